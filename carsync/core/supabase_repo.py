from __future__ import annotations

import logging
import os
from typing import Any

from supabase import Client, create_client


LOGGER = logging.getLogger(__name__)

LISTINGS_TABLE = "listings"
DEFAULT_IMAGE_BUCKET = "vehicle-images"
FINGERPRINT_PAGE_SIZE = 1000


class SupabaseRepo:
    def __init__(
        self,
        url: str | None = None,
        service_role_key: str | None = None,
        image_bucket: str | None = None,
    ) -> None:
        supabase_url = url or os.environ.get("SUPABASE_URL")
        supabase_key = service_role_key or os.environ.get("SUPABASE_SERVICE_ROLE_KEY")
        if not supabase_url or not supabase_key:
            raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY are required.")
        self.client: Client = create_client(supabase_url, supabase_key)
        self.image_bucket = image_bucket or os.environ.get("SUPABASE_IMAGE_BUCKET") or DEFAULT_IMAGE_BUCKET

    def check_connection(self) -> None:
        self.client.table(LISTINGS_TABLE).select("id").limit(1).execute()

    def get_known_fingerprints(self) -> set[str]:
        """
        All fingerprints already stored, paged past the PostgREST row limit.
        Returns an empty set when the query fails so the run can still start.
        """
        fingerprints: set[str] = set()
        start = 0
        try:
            while True:
                rows = (
                    self.client.table(LISTINGS_TABLE)
                    .select("fingerprint")
                    .not_.is_("fingerprint", "null")
                    .range(start, start + FINGERPRINT_PAGE_SIZE - 1)
                    .execute()
                    .data
                    or []
                )
                fingerprints.update(row["fingerprint"] for row in rows if row.get("fingerprint"))
                if len(rows) < FINGERPRINT_PAGE_SIZE:
                    break
                start += FINGERPRINT_PAGE_SIZE
        except Exception as exc:  # noqa: BLE001
            LOGGER.error("Error loading fingerprints: %s", exc)
            return set()
        return fingerprints

    def insert_listing(self, row: dict[str, Any]) -> dict[str, Any]:
        response = self.client.table(LISTINGS_TABLE).insert(row).execute()
        inserted = (response.data or [{}])[0]
        return {"id": inserted.get("id"), "slug": inserted.get("slug", row.get("slug"))}

    def upload_public_object(self, path: str, data: bytes, content_type: str) -> str:
        bucket = self.client.storage.from_(self.image_bucket)
        bucket.upload(path, data, {"content-type": content_type, "upsert": "true"})
        return bucket.get_public_url(path)
