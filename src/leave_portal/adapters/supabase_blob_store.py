"""Supabase Storage blob store."""

from dataclasses import dataclass

from supabase import Client

from leave_portal.services.photos import BlobStore


@dataclass
class SupabaseBlobStore(BlobStore):
    """Stores photo bytes in a public Supabase Storage bucket."""

    client: Client
    bucket: str

    def upload(self, key: str, data: bytes, content_type: str) -> str:
        """Upload bytes without overwriting and return the public URL."""
        storage = self.client.storage.from_(self.bucket)
        storage.upload(
            path=key,
            file=data,
            file_options={"content-type": content_type, "upsert": "false"},
        )
        return storage.get_public_url(key)

    def delete(self, key: str) -> None:
        """Remove an object from the bucket."""
        self.client.storage.from_(self.bucket).remove([key])
