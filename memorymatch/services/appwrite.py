"""
Appwrite storage client.

Stores card images in an Appwrite storage bucket and card records in an
Appwrite database collection, as an alternative to the local card API.
Each card is a document {cardId, fileId, imageUrl, points, author}.

Talks to the Appwrite REST API directly with httpx.
"""

import base64
import binascii
import json
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from memorymatch.config import (
    DEFAULT_AUTHOR,
    STANDARD_POINTS,
    Settings,
    appwrite_configured,
    settings,
)
from memorymatch.models.card import CardDefinition
from memorymatch.models.failure import StorageNotConfiguredError

logger = logging.getLogger(__name__)

# Asks Appwrite to generate the id
UNIQUE_ID = "unique()"


@dataclass
class AppwriteCard:
    """A card as stored in Appwrite."""

    card_id: str
    file_id: str
    image_url: str
    points: int = STANDARD_POINTS
    author: str = DEFAULT_AUTHOR
    document_id: str | None = None

    def to_definition(self) -> CardDefinition:
        return CardDefinition(
            identity=self.card_id,
            image_reference=self.image_url,
            point_value=self.points,
            author_label=self.author,
        )


def decode_data_uri(data_uri: str) -> tuple[bytes, str]:
    """
    Split a base64 data URI into raw bytes and its content type.

    Raises:
        ValueError: If the string is not a base64 data URI
    """
    if not data_uri.startswith("data:") or "," not in data_uri:
        raise ValueError("Not a data URI")

    header, payload = data_uri[5:].split(",", 1)
    if not header.endswith(";base64"):
        raise ValueError("Only base64 data URIs are supported")

    content_type = header[: -len(";base64")] or "application/octet-stream"
    try:
        return base64.b64decode(payload, validate=True), content_type
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 payload: {e}") from e


class AppwriteClient:
    """
    Client for card storage on Appwrite.

    Reads from an unconfigured backend return nothing; writes raise
    StorageNotConfiguredError.
    """

    def __init__(self, config: Settings | None = None, timeout: float = 30.0) -> None:
        """
        Initialize the client.

        Args:
            config: Settings holding the Appwrite endpoint and ids.
                Defaults to the application settings.
            timeout: Request timeout in seconds.
        """
        self.config = config or settings
        self.endpoint = self.config.appwrite_endpoint.rstrip("/")
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return appwrite_configured(self.config)

    def _headers(self) -> dict[str, str]:
        headers = {"X-Appwrite-Project": self.config.appwrite_project_id}
        if self.config.appwrite_api_key:
            headers["X-Appwrite-Key"] = self.config.appwrite_api_key
        return headers

    def _documents_url(self) -> str:
        return (
            f"{self.endpoint}/databases/{self.config.appwrite_database_id}"
            f"/collections/{self.config.appwrite_collection_id}/documents"
        )

    def _files_url(self) -> str:
        return f"{self.endpoint}/storage/buckets/{self.config.appwrite_bucket_id}/files"

    def file_view_url(self, file_id: str) -> str:
        """
        Public URL of the raw file.

        Uses the view endpoint rather than preview, which some plans block
        for image transformations.
        """
        return f"{self._files_url()}/{file_id}/view?project={self.config.appwrite_project_id}"

    async def _image_bytes(
        self, client: httpx.AsyncClient, image_data: str
    ) -> tuple[bytes, str]:
        if image_data.startswith("data:"):
            return decode_data_uri(image_data)

        response = await client.get(image_data)
        response.raise_for_status()
        return response.content, response.headers.get("content-type", "image/png")

    async def upload_card(
        self,
        card_id: str,
        image_data: str,
        points: int = STANDARD_POINTS,
        author: str = DEFAULT_AUTHOR,
    ) -> AppwriteCard:
        """
        Upload the image to storage, then record the card in the database.

        Args:
            card_id: Card identity
            image_data: Data URI or URL of the image
            points: Point value
            author: Who drew the card

        Returns:
            The stored card

        Raises:
            StorageNotConfiguredError: If Appwrite is not configured
            ValueError: If image_data is a malformed data URI
            httpx.HTTPError: If an API request fails
        """
        if not self.configured:
            raise StorageNotConfiguredError()

        async with httpx.AsyncClient(timeout=self.timeout, headers=self._headers()) as client:
            content, content_type = await self._image_bytes(client, image_data)

            response = await client.post(
                self._files_url(),
                data={"fileId": UNIQUE_ID},
                files={"file": (f"{card_id}.png", content, content_type)},
            )
            response.raise_for_status()
            file_id = str(response.json()["$id"])
            image_url = self.file_view_url(file_id)

            response = await client.post(
                self._documents_url(),
                json={
                    "documentId": UNIQUE_ID,
                    "data": {
                        "cardId": card_id,
                        "fileId": file_id,
                        "imageUrl": image_url,
                        "points": points,
                        "author": author,
                    },
                },
            )
            response.raise_for_status()
            document_id = response.json().get("$id")

        logger.info("Uploaded card %r to Appwrite (file %s)", card_id, file_id)
        return AppwriteCard(
            card_id=card_id,
            file_id=file_id,
            image_url=image_url,
            points=points,
            author=author,
            document_id=document_id,
        )

    async def list_cards(self) -> list[AppwriteCard]:
        """
        All cards, newest first.

        Returns an empty list when Appwrite is not configured.

        Raises:
            httpx.HTTPError: If the API request fails
        """
        if not self.configured:
            return []

        query = json.dumps({"method": "orderDesc", "attribute": "$createdAt"})
        async with httpx.AsyncClient(timeout=self.timeout, headers=self._headers()) as client:
            response = await client.get(self._documents_url(), params={"queries[]": query})
            response.raise_for_status()
            documents: list[dict[str, Any]] = response.json().get("documents", [])

        return [self._card_from_document(doc) for doc in documents]

    def _card_from_document(self, doc: dict[str, Any]) -> AppwriteCard:
        file_id = str(doc["fileId"])
        return AppwriteCard(
            card_id=str(doc["cardId"]),
            file_id=file_id,
            # Rebuild rather than trust the stored URL, endpoints can move
            image_url=self.file_view_url(file_id),
            points=doc.get("points") or STANDARD_POINTS,
            author=doc.get("author") or DEFAULT_AUTHOR,
            document_id=doc.get("$id"),
        )

    async def delete_card(self, document_id: str, file_id: str) -> None:
        """
        Delete the card's document, then its image.

        Does nothing when Appwrite is not configured.

        Raises:
            httpx.HTTPError: If an API request fails
        """
        if not self.configured:
            return

        async with httpx.AsyncClient(timeout=self.timeout, headers=self._headers()) as client:
            response = await client.delete(f"{self._documents_url()}/{document_id}")
            response.raise_for_status()
            response = await client.delete(f"{self._files_url()}/{file_id}")
            response.raise_for_status()

        logger.info("Deleted Appwrite document %s and file %s", document_id, file_id)
