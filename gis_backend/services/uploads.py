# services/uploads.py
"""
Upload stage: turns an incoming request body (multipart, urlencoded or JSON)
into a Submission of plain text fields plus at most one validated image.

Limits and the allow-list come from AppConfig. Nothing is written to disk
here; the resource service hands the staged bytes to the AssetStore once the
target record is known.
"""
from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from fastapi import Request
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException

from gis_backend.config.app_config import AppConfig
from gis_backend.services.errors import PayloadTooLargeError, ValidationError

_CHUNK = 1024 * 1024
_FORM_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


@dataclass(frozen=True)
class UploadPolicy:
    max_file_bytes: int
    max_field_bytes: int
    allowed_extensions: frozenset
    categories: Dict[str, str]
    fallback_category: str = "others"

    @classmethod
    def from_config(cls, cfg: AppConfig) -> "UploadPolicy":
        return cls(
            max_file_bytes=cfg.max_file_bytes(),
            max_field_bytes=cfg.max_field_bytes(),
            allowed_extensions=cfg.allowed_extensions(),
            categories=cfg.upload_categories(),
            fallback_category=cfg.fallback_category(),
        )

    def category_for(self, field_name: str) -> str:
        return self.categories.get(field_name, self.fallback_category)

    def check_type(self, filename: str, content_type: str) -> str:
        """Returns the normalized extension or raises ValidationError."""
        ext = os.path.splitext(filename or "")[1].lower().lstrip(".")
        mime = (content_type or "").split(";", 1)[0].strip().lower()
        mime_major, _, mime_sub = mime.partition("/")
        if (
            ext not in self.allowed_extensions
            or mime_major != "image"
            or mime_sub not in self.allowed_extensions
        ):
            allowed = ", ".join(sorted(self.allowed_extensions))
            raise ValidationError(f"Only image files are allowed ({allowed})")
        return ext


@dataclass(frozen=True)
class StagedUpload:
    field: str
    filename: str
    content_type: str
    extension: str
    data: bytes = field(repr=False)


@dataclass
class Submission:
    fields: Dict[str, Any]
    upload: Optional[StagedUpload] = None


def _field_size(value: Any) -> int:
    if isinstance(value, str):
        return len(value.encode("utf-8"))
    return len(json.dumps(value, ensure_ascii=False).encode("utf-8"))


def _check_field_sizes(fields: Dict[str, Any], policy: UploadPolicy) -> None:
    total = 0
    for name, value in fields.items():
        size = _field_size(value)
        if size > policy.max_field_bytes:
            raise PayloadTooLargeError(f"Field '{name}' is too large")
        total += size
        if total > policy.max_field_bytes:
            raise PayloadTooLargeError("Form fields are too large")


async def _stage_file(name: str, up: UploadFile, policy: UploadPolicy) -> StagedUpload:
    ext = policy.check_type(up.filename or "", up.content_type or "")

    buf = bytearray()
    while True:
        chunk = await up.read(_CHUNK)
        if not chunk:
            break
        buf.extend(chunk)
        if len(buf) > policy.max_file_bytes:
            raise PayloadTooLargeError("File too large")

    return StagedUpload(
        field=name,
        filename=up.filename or "",
        content_type=up.content_type or "",
        extension=ext,
        data=bytes(buf),
    )


async def _read_form(request: Request, file_field: Optional[str], policy: UploadPolicy) -> Submission:
    try:
        form = await request.form(max_files=2, max_part_size=policy.max_field_bytes)
    except MultiPartException as e:
        raise _form_error(e.message) from None
    except StarletteHTTPException as e:
        raise _form_error(str(e.detail)) from None

    try:
        fields: Dict[str, Any] = {}
        upload: Optional[StagedUpload] = None
        for name, value in form.multi_items():
            if isinstance(value, UploadFile):
                # Browsers send an empty part for an untouched file input.
                if not value.filename and not value.size:
                    continue
                if name != file_field:
                    raise ValidationError(f"Unexpected file field '{name}'")
                if upload is not None:
                    raise ValidationError("Only one file may be uploaded per request")
                upload = await _stage_file(name, value, policy)
            else:
                fields[name] = value
    finally:
        await form.close()

    _check_field_sizes(fields, policy)
    return Submission(fields=fields, upload=upload)


def _form_error(message: str) -> ValidationError:
    if "maximum size" in message.lower():
        return PayloadTooLargeError("Form field too large")
    if "too many files" in message.lower():
        return ValidationError("Only one file may be uploaded per request")
    return ValidationError(message or "Malformed form data")


async def _read_json(request: Request, policy: UploadPolicy) -> Submission:
    raw = await request.body()
    if len(raw) > policy.max_field_bytes:
        raise PayloadTooLargeError("Request body too large")
    if not raw.strip():
        return Submission(fields={})
    try:
        data = json.loads(raw)
    except ValueError:
        raise ValidationError("Request body must be valid JSON") from None
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return Submission(fields=data)


async def read_submission(
    request: Request,
    *,
    file_field: Optional[str],
    policy: UploadPolicy,
) -> Submission:
    length = request.headers.get("content-length")
    if length and length.isdigit() and int(length) > policy.max_file_bytes + policy.max_field_bytes:
        raise PayloadTooLargeError("Request body too large")

    content_type = request.headers.get("content-type", "").lower()
    if content_type.startswith(_FORM_TYPES):
        return await _read_form(request, file_field, policy)
    return await _read_json(request, policy)


def submission_for(file_field: Optional[str]) -> Callable:
    """FastAPI dependency reading a Submission whose optional file arrives under file_field."""

    async def _dependency(request: Request) -> Submission:
        return await read_submission(
            request,
            file_field=file_field,
            policy=request.app.state.upload_policy,
        )

    return _dependency
