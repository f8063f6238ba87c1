"""Tests for resource uploads and validation."""

import asyncio
from uuid import uuid4

import pytest

from tutor_portal.services.resources import (
    MAX_UPLOAD_BYTES,
    ResourceNotFoundError,
    ResourceService,
    ResourceUpload,
    UploadValidationError,
    validate_upload,
)
from tests.conftest import (
    FakeStorageGateway,
    InMemoryResourceRepository,
    make_resource,
)

PDF = "application/pdf"
DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def _upload(data: bytes, content_type: str = PDF, **overrides) -> ResourceUpload:
    values = {
        "tutor_id": uuid4(),
        "filename": "fractions-worksheet.pdf",
        "content_type": content_type,
        "data": data,
        "subject": "Maths",
    }
    values.update(overrides)
    return ResourceUpload(**values)


def test_validate_upload_accepts_office_documents() -> None:
    assert validate_upload(PDF, 1024) == "pdf"
    assert validate_upload(DOCX, 1024) == "docx"
    assert validate_upload("application/zip; charset=binary", 10) == "zip"
    assert validate_upload(PDF, MAX_UPLOAD_BYTES) == "pdf"


def test_validate_upload_rejects_large_files() -> None:
    with pytest.raises(UploadValidationError) as excinfo:
        validate_upload(PDF, 11 * 1024 * 1024)

    assert excinfo.value.constraint == "size"
    assert "10 MB" in str(excinfo.value)


def test_validate_upload_rejects_images() -> None:
    with pytest.raises(UploadValidationError) as excinfo:
        validate_upload("image/png", 1024)

    assert excinfo.value.constraint == "type"
    assert "image/png" in str(excinfo.value)
    assert "pdf" in str(excinfo.value)


def test_oversized_upload_never_reaches_storage(
    resource_repository: InMemoryResourceRepository, storage: FakeStorageGateway
) -> None:
    service = ResourceService(resource_repository, storage)

    with pytest.raises(UploadValidationError):
        asyncio.run(service.upload_resource(_upload(b"x" * (11 * 1024 * 1024))))

    assert storage.objects == {}
    assert resource_repository.payloads == []


def test_upload_stores_file_and_registers_resource(
    resource_repository: InMemoryResourceRepository, storage: FakeStorageGateway
) -> None:
    service = ResourceService(resource_repository, storage)
    student_id = uuid4()
    upload = _upload(b"%PDF-1.7", student_ids=(student_id,))

    resource = asyncio.run(service.upload_resource(upload))

    (path,) = storage.objects
    assert path.startswith(f"resources/{upload.tutor_id}/")
    assert path.endswith(".pdf")
    assert storage.objects[path] == (b"%PDF-1.7", PDF)
    assert resource.title == "fractions-worksheet"
    assert resource.file_url == f"https://storage.example/{path}"
    assert resource.file_type == "pdf"
    assert resource.is_visible_to(student_id)
    assert not resource.is_public


def test_failed_registration_removes_stored_file(
    resource_repository: InMemoryResourceRepository, storage: FakeStorageGateway
) -> None:
    resource_repository.fail_create = True
    service = ResourceService(resource_repository, storage)

    with pytest.raises(RuntimeError):
        asyncio.run(service.upload_resource(_upload(b"%PDF-1.7")))

    assert storage.objects == {}
    assert len(storage.removed) == 1


def test_list_resources_by_role(
    resource_repository: InMemoryResourceRepository, storage: FakeStorageGateway
) -> None:
    tutor_id, student_id = uuid4(), uuid4()
    resource_repository.add(make_resource(tutor_id, title="mine"))
    resource_repository.add(make_resource(uuid4(), title="open", is_public=True))
    resource_repository.add(
        make_resource(uuid4(), title="granted", student_ids=(student_id,))
    )
    service = ResourceService(resource_repository, storage)

    tutor_titles = asyncio.run(service.list_resources(tutor_id, "tutor"))
    student_titles = asyncio.run(service.list_resources(student_id, "student"))

    assert [resource.title for resource in tutor_titles] == ["mine"]
    assert sorted(resource.title for resource in student_titles) == ["granted", "open"]


def test_delete_resource_checks_owner(
    resource_repository: InMemoryResourceRepository, storage: FakeStorageGateway
) -> None:
    service = ResourceService(resource_repository, storage)
    resource = asyncio.run(service.upload_resource(_upload(b"%PDF-1.7")))

    with pytest.raises(ResourceNotFoundError):
        asyncio.run(service.delete_resource(resource.id, uuid4()))

    asyncio.run(service.delete_resource(resource.id, resource.tutor_id))

    assert resource.id not in resource_repository.resources
    assert storage.removed == [resource.file_path]
