"""
Translator API endpoints.
"""
import asyncio
import logging
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response

from ..dependencies import ConnectorDep, SettingsDep, SignerDep
from ..models import ErrorResponse, FetchResponse
from ...definitions import CONTEXT_URLS
from ...errors import ValidationError
from ...signing import to_jsonable

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/translator/v1", tags=["translator"])

DATA_PRODUCT = "DataProduct"


def read_text(path: str) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


@router.post(
    "/fetch",
    response_model=FetchResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def fetch(request: Request, connector: ConnectorDep, signer: SignerDep):
    """Fetch data from the configured backend and return it signed."""
    try:
        body = await request.json()
    except ValueError as e:
        raise ValidationError("Request body must be valid JSON.") from e

    items = await connector.fetch(body)

    context = CONTEXT_URLS[DATA_PRODUCT]
    result = {
        "@context": context,
        "data": {
            "@context": context,
            "@type": DATA_PRODUCT,
            "items": to_jsonable(items),
        },
    }
    return JSONResponse(content={**result, "signature": signer.sign(result)})


@router.get("/public.key")
async def public_key(settings: SettingsDep, signer: SignerDep):
    """Public key for verifying response signatures."""
    if settings.public_key_path:
        pem = await asyncio.to_thread(read_text, settings.public_key_path)
    else:
        pem = signer.public_key_pem()
    return Response(
        content=pem,
        media_type="application/octet-stream",
        headers={"Content-Disposition": "attachment; filename=public.key"},
    )
