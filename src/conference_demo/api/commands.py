"""Operator commands for controlling the running conference.

Example: $ curl localhost:9090/command/mute
"""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

from ..schemas import CommandResult

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/command")


def _not_running(request: Request) -> PlainTextResponse:
    phone_number = request.app.state.settings.phone_number
    return PlainTextResponse(f"Conference not running yet, try calling {phone_number} first.")


@router.get("/list")
async def list_conferences(request: Request):
    correlator = request.app.state.correlator
    if correlator.conference is None:
        return _not_running(request)

    conferences = await request.app.state.client.list_conferences()
    return {"data": conferences}


@router.get("/mute", response_model=CommandResult)
async def mute(request: Request):
    """Mute every tracked call in the conference."""
    correlator = request.app.state.correlator
    if correlator.conference is None:
        return _not_running(request)

    ids = correlator.call_control_ids()
    result = await request.app.state.client.mute(correlator.conference.id, ids)
    return CommandResult(command="mute", call_control_ids=ids, result=result)


@router.get("/unmute", response_model=CommandResult)
async def unmute(request: Request):
    correlator = request.app.state.correlator
    if correlator.conference is None:
        return _not_running(request)

    ids = correlator.call_control_ids()
    result = await request.app.state.client.unmute(correlator.conference.id, ids)
    return CommandResult(command="unmute", call_control_ids=ids, result=result)


@router.get("/hold", response_model=CommandResult)
async def hold(request: Request):
    """Put every tracked call on hold with the configured waiting music."""
    correlator = request.app.state.correlator
    if correlator.conference is None:
        return _not_running(request)

    ids = correlator.call_control_ids()
    audio_url = request.app.state.settings.waiting_audio_url
    result = await request.app.state.client.hold(correlator.conference.id, ids, audio_url=audio_url)
    return CommandResult(command="hold", call_control_ids=ids, result=result)


@router.get("/unhold", response_model=CommandResult)
async def unhold(request: Request):
    correlator = request.app.state.correlator
    if correlator.conference is None:
        return _not_running(request)

    ids = correlator.call_control_ids()
    result = await request.app.state.client.unhold(correlator.conference.id, ids)
    return CommandResult(command="unhold", call_control_ids=ids, result=result)


@router.get("/call/{number}", response_model=CommandResult)
async def call(request: Request, number: str) -> CommandResult:
    """Dial out to `number` (digits only, the leading + is added here).

    Example: $ curl localhost:9090/command/call/15555555555
    """
    settings = request.app.state.settings
    to = f"+{number.lstrip('+')}"
    logger.info("Calling %s", to)
    result = await request.app.state.client.dial(to, settings.phone_number, settings.connection_id)
    return CommandResult(command="call", result=result)
