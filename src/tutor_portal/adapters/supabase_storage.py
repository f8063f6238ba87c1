"""Supabase Storage gateway for resource files."""

from dataclasses import dataclass

from tutor_portal.adapters.supabase_connection import SupabaseConnection
from tutor_portal.services.resources import StorageGateway


@dataclass
class SupabaseStorageGateway(StorageGateway):
    """Stores resource files in a public Supabase bucket."""

    connection: SupabaseConnection
    bucket: str

    async def upload(self, path: str, data: bytes, content_type: str) -> str:
        """Upload bytes and return their public URL."""
        client = await self.connection.client()
        bucket = client.storage.from_(self.bucket)
        await bucket.upload(
            path,
            data,
            file_options={"content-type": content_type, "cache-control": "3600"},
        )
        return await bucket.get_public_url(path)

    async def remove(self, path: str) -> None:
        """Delete a stored object."""
        client = await self.connection.client()
        await client.storage.from_(self.bucket).remove([path])
