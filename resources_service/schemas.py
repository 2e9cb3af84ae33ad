from typing import Any, List, Union
import simplejson  # use_decimal: les prix restent des Decimal sur le fil
from pydantic import ValidationError
from resources_service.models import Resource


class PayloadError(ValueError):
    """Request body is missing, not JSON, or not a resource."""


def decode_json(raw: Union[bytes, str]) -> Any:
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    return simplejson.loads(raw, use_decimal=True)


def encode_json(data: Any) -> str:
    return simplejson.dumps(data, use_decimal=True)


def parse_resource(raw: bytes) -> Resource:
    if not raw or not raw.strip():
        raise PayloadError("Request body is required")
    try:
        data = decode_json(raw)
    except (ValueError, UnicodeDecodeError) as e:
        raise PayloadError(f"Malformed JSON body: {e}") from e
    if not isinstance(data, dict):
        raise PayloadError("Request body must be a JSON object")
    try:
        return Resource.model_validate(data)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise PayloadError(f"Invalid resource fields: {fields}") from e


def render_resource(resource: Resource) -> str:
    return encode_json(resource.model_dump())


def render_resources(resources: List[Resource]) -> str:
    return encode_json([r.model_dump() for r in resources])
