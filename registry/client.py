"""HTTP client for a Confluent-compatible schema registry."""

from __future__ import annotations

import logging
from typing import Any, Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError as PydanticValidationError

from errors import (
    RegistryError,
    RegistryUnavailableError,
    SchemaDefinitionError,
    SchemaMismatchError,
    UnknownSchemaError,
)
from models.schema import CompatibilityReport, RecordSchema, RegisteredSchema, SchemaIdResponse
from settings import get_settings

logger = logging.getLogger(__name__)

CONTENT_TYPE = "application/vnd.schemaregistry.v1+json"


class RegistryClient:
    """Registers, looks up and checks record schemas against the registry."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": f"{CONTENT_TYPE}, application/json", "Content-Type": CONTENT_TYPE},
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "RegistryClient":
        return self

    def __exit__(self, *_exc: Any) -> None:
        self.close()

    def register(self, subject: str, schema: RecordSchema) -> int:
        response = self._request(
            "POST",
            f"/subjects/{quote(subject, safe='')}/versions",
            json={"schema": schema.canonical_json()},
        )
        if response.status_code == 409:
            detail = _error_detail(response)
            raise SchemaMismatchError(
                f"Registry rejected {schema.full_name} v{schema.version} as incompatible: {detail}",
                violations=[detail],
            )
        self._raise_for_status(response)
        schema_id = self._parse(SchemaIdResponse, response).id
        logger.info(
            "Registered schema",
            extra={"subject": subject, "schema_id": schema_id, "version": schema.version},
        )
        return schema_id

    def find_id(self, subject: str, schema: RecordSchema) -> int:
        """Return the id of ``schema`` if it is already registered under ``subject``."""
        response = self._request(
            "POST",
            f"/subjects/{quote(subject, safe='')}",
            json={"schema": schema.canonical_json()},
        )
        if response.status_code == 404:
            raise RegistryError(
                f"{schema.full_name} v{schema.version} is not registered under subject "
                f"{subject!r}: {_error_detail(response)}",
                status_code=404,
            )
        self._raise_for_status(response)
        return self._parse(SchemaIdResponse, response).id

    def lookup(self, schema_id: int) -> RecordSchema:
        response = self._request("GET", f"/schemas/ids/{schema_id}")
        if response.status_code == 404:
            raise UnknownSchemaError(schema_id)
        self._raise_for_status(response)
        registered = self._parse(RegisteredSchema, response)
        if registered.schema_type.upper() != "AVRO":
            raise SchemaDefinitionError(
                f"Schema id {schema_id} has unsupported type {registered.schema_type!r}"
            )
        return RecordSchema.from_avro(registered.schema_text)

    def check_compatibility(self, subject: str, schema: RecordSchema) -> CompatibilityReport:
        response = self._request(
            "POST",
            f"/compatibility/subjects/{quote(subject, safe='')}/versions/latest",
            params={"verbose": "true"},
            json={"schema": schema.canonical_json()},
        )
        if response.status_code == 404:
            # Nothing registered yet under this subject.
            return CompatibilityReport(compatible=True, violations=[])
        self._raise_for_status(response)
        return self._parse(CompatibilityReport, response)

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as exc:
            logger.warning("Schema registry request timed out: %s %s", method, url)
            raise RegistryUnavailableError(
                f"Schema registry at {self.base_url} timed out on {method} {url}"
            ) from exc
        except httpx.TransportError as exc:
            logger.warning("Schema registry unreachable: %s %s", method, url)
            raise RegistryUnavailableError(
                f"Schema registry at {self.base_url} is unreachable: {exc}"
            ) from exc
        if response.status_code >= 500:
            logger.warning(
                "Schema registry error response",
                extra={"status_code": response.status_code},
            )
            raise RegistryUnavailableError(
                f"Schema registry returned {response.status_code}: {_error_detail(response)}",
                status_code=response.status_code,
            )
        return response

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        if response.is_success:
            return
        detail = _error_detail(response)
        if response.status_code == 422:
            raise SchemaDefinitionError(f"Registry rejected the schema definition: {detail}")
        raise RegistryError(
            f"Request failed with status {response.status_code}: {detail}",
            status_code=response.status_code,
        )

    @staticmethod
    def _parse(model: Any, response: httpx.Response) -> Any:
        try:
            return model.model_validate(response.json())
        except (ValueError, PydanticValidationError) as exc:
            raise RegistryError(
                f"Unexpected registry response payload: {response.text[:200]!r}",
                status_code=response.status_code,
            ) from exc


def _error_detail(response: httpx.Response) -> str:
    try:
        data = response.json()
        detail = data.get("message") or data.get("detail")
    except (ValueError, AttributeError):
        detail = response.text.strip()
    return detail or "no detail provided."


def build_default_registry_client(
    base_url: Optional[str] = None,
    timeout: Optional[float] = None,
) -> RegistryClient:
    """Factory that wires a registry client from settings."""
    settings = get_settings()
    return RegistryClient(
        base_url=settings.registry_url if base_url is None else base_url,
        timeout=settings.registry_timeout if timeout is None else timeout,
    )
