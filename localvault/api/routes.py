from typing import Optional
import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from .schemas import ChatRequest, ErrorResponse
from ..config import settings
from ..services.openai_proxy import OpenAIProxy

log = structlog.get_logger()

router = APIRouter()

def get_proxy() -> OpenAIProxy:
    return OpenAIProxy.from_settings(settings)

@router.get(
    '/health',
    summary="Health check",
    description="Returns ok when the service is up.",
    tags=["Health"],
)
def health():
    return {'ok': True}

@router.post(
    '/api/chat',
    summary="Chat completion proxy",
    description=(
        "Forwards the transcript to the configured chat-completion model. "
        "When context is given it is prepended as a system message. "
        "Upstream status code and body are returned unchanged."
    ),
    responses={500: {"model": ErrorResponse}},
    tags=["Chat"],
)
async def chat(req: Optional[ChatRequest] = None, proxy: OpenAIProxy = Depends(get_proxy)):
    if not proxy.api_key:
        return JSONResponse({'error': 'Missing OPENAI_API_KEY'}, status_code=500)
    req = req or ChatRequest()
    try:
        status, data = await proxy.forward(req.messages, req.context)
    except Exception as e:
        log.exception("chat_proxy_upstream_error")
        return JSONResponse({'error': str(e)}, status_code=500)
    return JSONResponse(data, status_code=status)

@router.api_route('/api/chat', methods=['GET', 'HEAD', 'OPTIONS', 'PUT', 'PATCH', 'DELETE'], include_in_schema=False)
def chat_wrong_method():
    return JSONResponse({'error': 'Use POST'}, status_code=405)
