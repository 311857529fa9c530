from fastapi import APIRouter, Request

from linkguard.core.logging import log_debug, log_info
from linkguard.core.state import state
from linkguard.models.request import ParseLinkRequest, PendingLinksRequest
from linkguard.models.response import ParseLinkResponse, PendingLinksResponse, QueuedLinksResponse
from linkguard.services.deeplink import deeplink_parser
from linkguard.services.pending import extract_external_links_from_argv
from linkguard.utils.url import safe_url_for_log

router = APIRouter()


@router.post("/links", response_model=QueuedLinksResponse)
async def queue_links(request: Request, body: PendingLinksRequest):
    """Hold links delivered by the OS until the UI consumes them"""
    links = extract_external_links_from_argv(body.argv) + list(body.urls)
    queued = state.pending_links.enqueue(links)
    log_debug(request, f"Queued {queued} external link(s)")
    return QueuedLinksResponse(queued=queued, pending=len(state.pending_links))


@router.post("/links/consume", response_model=PendingLinksResponse)
async def consume_links(request: Request):
    """Drain the inbox; the UI listener is ready from here on"""
    state.listener_ready = True
    links = state.pending_links.take()
    log_debug(request, f"Handed {len(links)} pending link(s) to the UI")
    return PendingLinksResponse(links=links)


@router.post("/parse", response_model=ParseLinkResponse)
async def parse_link(request: Request, body: ParseLinkRequest):
    """
    Validate a deep link.
    Rejected links return request=None with status 200 so the response
    never tells a caller why a link failed.
    """
    link_request = deeplink_parser.parse(body.link)
    if link_request is None:
        return ParseLinkResponse()

    route = deeplink_parser.resolve_route_target(link_request.target, link_request.url)
    log_info(request, f"Routing {safe_url_for_log(link_request.url)} to {route.value}")
    return ParseLinkResponse(request=link_request, route=route)
