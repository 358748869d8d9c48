# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Async HTTP client for the remote content service.

The content service stores course hierarchies, content assets and framework
taxonomies. Every call is authenticated with the bearer token, the tenant id
and the channel id from ContentServiceSettings.

The client handles:
- Course creation, hierarchy fetch and hierarchy update
- Content association with course units
- Review, publish and retire
- Course search and framework read
- Asset creation, upload and registration

Example:
    async with ContentServiceClient(settings.content_service) as client:
        course_id = await client.create_course("Science")
        content = await client.fetch_hierarchy(course_id)
"""

import logging
import uuid
from typing import Any

import httpx

from course_sync.core.config.settings import ContentServiceSettings
from course_sync.domains.hierarchy.models import COLLECTION_MIME_TYPE, CourseMetadata, HierarchyPayload
from course_sync.infrastructure.remote.exceptions import (
    ContentNotFoundError,
    ContentServiceAPIError,
)

logger = logging.getLogger(__name__)

PUBLISH_CHECKLIST = [
    "No Hate speech, Abuse, Violence, Profanity",
    "Is suitable for children",
    "Correct Board, Grade, Subject, Medium",
    "Appropriate Title, Description",
    "No Sexual content, Nudity or Vulgarity",
    "No Discrimination or Defamation",
    "Appropriate tags such as Resource Type, Concepts",
    "Relevant Keywords",
    "Audio (if any) is clear and easy to understand",
    "No Spelling mistakes in the text",
    "Language is simple to understand",
    "Can see the content clearly on Desktop and App",
    "Content plays correctly",
]

SEARCH_STATUSES = [
    "Draft",
    "FlagDraft",
    "Review",
    "Processing",
    "Live",
    "Unlisted",
    "FlagReview",
]


class ContentServiceClient:
    """Async client for the content service API.

    Attributes:
        _settings: Content service configuration.
        _client: Shared HTTP client.
    """

    def __init__(
        self,
        settings: ContentServiceSettings,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            settings: Content service configuration.
            client: Optional preconfigured HTTP client (used by tests).
        """
        self._settings = settings
        self._client = client or httpx.AsyncClient(
            base_url=settings.base_url,
            timeout=settings.timeout,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "ContentServiceClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @property
    def created_by(self) -> str:
        """User id recorded on every write."""
        return self._settings.created_by

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json_headers: bool = True,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Send an authenticated request and return the decoded body.

        Raises:
            ContentServiceAPIError: On error responses and transport failures.
        """
        headers = dict(self._settings.auth_headers)
        if not json_headers:
            headers.pop("Content-Type", None)
        headers.update(kwargs.pop("headers", {}))

        try:
            response = await self._client.request(method, path, headers=headers, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                "Content service %s %s failed: %s %s",
                method,
                path,
                e.response.status_code,
                e.response.text,
            )
            raise ContentServiceAPIError(
                message=f"{method} {path} failed",
                status_code=e.response.status_code,
                response_body=e.response.text,
            ) from e
        except httpx.TransportError as e:
            logger.error("Content service %s %s unreachable: %s", method, path, str(e))
            raise ContentServiceAPIError(
                message=f"{method} {path} failed: {str(e)}",
                details={"error_type": type(e).__name__},
            ) from e
        except (httpx.InvalidURL, ValueError) as e:
            logger.error("Content service %s %s has an invalid URL: %s", method, path, str(e))
            raise ContentServiceAPIError(
                message=f"{method} {path} failed: invalid URL",
                details={"error_type": type(e).__name__},
            ) from e

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            logger.error("Content service %s %s returned a non-JSON body", method, path)
            raise ContentServiceAPIError(
                message=f"{method} {path} returned a non-JSON body",
                status_code=response.status_code,
                response_body=response.text,
            ) from e

    async def create_course(self, title: str, icon_url: str = "") -> str:
        """Create an empty course root.

        Returns:
            Identifier of the new course.
        """
        body = {
            "request": {
                "content": {
                    "code": str(uuid.uuid4()),
                    "name": title,
                    "appIcon": icon_url,
                    "description": "No description available",
                    "createdBy": self._settings.created_by,
                    "createdFor": [self._settings.created_for],
                    "mimeType": COLLECTION_MIME_TYPE,
                    "resourceType": "Course",
                    "primaryCategory": "Course",
                    "contentType": "Course",
                    "framework": self._settings.course_framework,
                    "targetFWIds": [self._settings.target_framework],
                }
            }
        }
        data = await self._request("POST", "/action/content/v3/create", json=body)
        course_id = (data.get("result") or {}).get("node_id")
        if not course_id:
            raise ContentServiceAPIError(
                message="Course creation returned no identifier",
                status_code=200,
                details={"title": title},
            )
        logger.info("Created course '%s': %s", title, course_id)
        return course_id

    async def fetch_hierarchy(self, course_id: str, mode: str | None = "edit") -> dict[str, Any]:
        """Fetch the full hierarchy document of a course.

        Raises:
            ContentNotFoundError: If the course or its content is missing.
        """
        params = {"mode": mode} if mode else None
        try:
            data = await self._request("GET", f"/action/content/v3/hierarchy/{course_id}", params=params)
        except ContentServiceAPIError as e:
            if e.status_code == 404:
                raise ContentNotFoundError(course_id) from e
            raise

        content = (data.get("result") or {}).get("content")
        if not content:
            raise ContentNotFoundError(course_id)
        return content

    async def update_hierarchy(self, payload: HierarchyPayload) -> dict[str, str]:
        """Create or update a course hierarchy.

        Returns:
            Mapping of temporary identifiers to the identifiers assigned by
            the service for new nodes.
        """
        body = payload.to_request(self._settings.created_by)
        data = await self._request(
            "PATCH",
            "/action/content/v3/hierarchy/update",
            json=body,
            headers={"X-Source": "web"},
        )
        identifiers = (data.get("result") or {}).get("identifiers") or {}
        logger.info(
            "Updated hierarchy of %s: %d nodes, %d new identifiers",
            payload.root_identifier,
            len(payload.hierarchy),
            len(identifiers),
        )
        return dict(identifiers)

    async def associate_content(self, course_id: str, unit_id: str, content_ids: list[str]) -> None:
        """Attach leaf content to a course unit."""
        body = {
            "request": {
                "rootId": course_id,
                "unitId": unit_id,
                "children": list(content_ids),
            }
        }
        await self._request("PATCH", "/action/content/v3/hierarchy/add", json=body)
        logger.debug("Associated %d contents with unit %s", len(content_ids), unit_id)

    async def review(self, content_id: str) -> None:
        """Send content for review."""
        await self._request(
            "POST",
            f"/action/content/v3/review/{content_id}",
            json={"request": {"content": {}}},
        )

    async def publish(self, content_id: str) -> None:
        """Publish reviewed content."""
        body = {
            "request": {
                "content": {
                    "publishChecklist": PUBLISH_CHECKLIST,
                    "lastPublishedBy": self._settings.created_by,
                }
            }
        }
        await self._request("POST", f"/action/content/v3/publish/{content_id}", json=body)

    async def retire(self, content_id: str) -> None:
        """Retire (delete) content."""
        await self._request("DELETE", f"/action/content/v3/retire/{content_id}")
        logger.info("Retired content %s", content_id)

    async def search_course(self, title: str, metadata: CourseMetadata) -> str | None:
        """Find the most recently updated course with the given title.

        Returns:
            Identifier of the matching course, or None.
        """
        body = {
            "request": {
                "filters": {
                    "status": SEARCH_STATUSES,
                    "program": metadata.program or ["Open School"],
                    "domain": [metadata.domain or "Learning for Life"],
                    "primaryUser": metadata.primary_user,
                    "se_subDomains": [metadata.sub_domain],
                    "se_subjects": metadata.subjects,
                    "contentLanguage": metadata.content_language,
                    "primaryCategory": ["Course"],
                    "channel": self._settings.search_channel,
                },
                "sort_by": {"lastUpdatedOn": "desc"},
                "query": title,
                "limit": 1,
                "offset": 0,
            }
        }
        data = await self._request("POST", "/action/composite/v3/search", json=body)
        content = (data.get("result") or {}).get("content") or []
        if not content:
            return None
        identifier = content[0].get("identifier")
        return identifier if isinstance(identifier, str) else None

    async def read_framework(self, code: str | None = None) -> dict[str, Any]:
        """Read a framework definition.

        Args:
            code: Framework code, defaults to the target framework.

        Returns:
            The "framework" object of the response.
        """
        framework = code or self._settings.target_framework
        data = await self._request("GET", f"/api/framework/v1/read/{framework}")
        return (data.get("result") or {}).get("framework") or {}

    async def create_asset(self, file_name: str, mime_type: str) -> str:
        """Create an image asset node.

        Returns:
            Identifier of the asset.
        """
        body = {
            "request": {
                "content": {
                    "name": file_name,
                    "code": str(uuid.uuid4()),
                    "mimeType": mime_type,
                    "mediaType": "image",
                    "contentType": "Asset",
                    "createdBy": self._settings.created_by,
                    "framework": self._settings.asset_framework,
                }
            }
        }
        data = await self._request("POST", "/action/content/v3/create", json=body)
        result = data.get("result") or {}
        asset_id = result.get("identifier") or result.get("node_id")
        if not asset_id:
            raise ContentServiceAPIError(
                message="Asset creation returned no identifier",
                status_code=200,
                details={"file_name": file_name},
            )
        return asset_id

    async def get_upload_url(self, asset_id: str, file_name: str) -> str:
        """Request a pre-signed upload URL for an asset file."""
        data = await self._request(
            "POST",
            f"/action/content/v3/upload/url/{asset_id}",
            json={"request": {"content": {"fileName": file_name}}},
        )
        url = (data.get("result") or {}).get("pre_signed_url")
        if not url:
            raise ContentServiceAPIError(
                message="Failed to get pre-signed upload URL",
                status_code=200,
                details={"asset_id": asset_id},
            )
        return url

    async def put_file(self, upload_url: str, data: bytes, mime_type: str) -> None:
        """Upload file bytes to a pre-signed URL (no service credentials)."""
        try:
            response = await self._client.put(upload_url, content=data, headers={"Content-Type": mime_type})
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ContentServiceAPIError(
                message="File upload failed",
                status_code=e.response.status_code,
                response_body=e.response.text,
            ) from e
        except httpx.TransportError as e:
            raise ContentServiceAPIError(message=f"File upload failed: {str(e)}") from e
        except (httpx.InvalidURL, ValueError) as e:
            raise ContentServiceAPIError(message="File upload failed: invalid upload URL") from e

    async def register_asset(self, asset_id: str, file_url: str, mime_type: str) -> str:
        """Register an uploaded file with its asset.

        Returns:
            Public content URL of the asset.
        """
        data = await self._request(
            "POST",
            f"/action/asset/v1/upload/{asset_id}",
            json_headers=False,
            files={"fileUrl": (None, file_url), "mimeType": (None, mime_type)},
        )
        status = (data.get("params") or {}).get("status")
        content_url = (data.get("result") or {}).get("content_url")
        if status != "successful" or not content_url:
            raise ContentServiceAPIError(
                message="Asset registration failed",
                status_code=200,
                details={"asset_id": asset_id, "errmsg": (data.get("params") or {}).get("errmsg")},
            )
        return content_url

    async def download(self, url: str) -> tuple[bytes, str | None]:
        """Download a file from an absolute URL.

        Returns:
            File bytes and the response content type, if any.
        """
        try:
            response = await self._client.get(url, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ContentServiceAPIError(
                message=f"Download failed: {url}",
                status_code=e.response.status_code,
            ) from e
        except httpx.TransportError as e:
            raise ContentServiceAPIError(message=f"Download failed: {url}: {str(e)}") from e
        except (httpx.InvalidURL, ValueError) as e:
            raise ContentServiceAPIError(message=f"Download failed: invalid URL {url}") from e
        return response.content, response.headers.get("content-type")
