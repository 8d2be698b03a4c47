"""Printer control endpoints."""
from fastapi import APIRouter, Depends, status

from nanodlp_bridge.api.dependencies import get_control_service
from nanodlp_bridge.schemas import (
    CapabilityResponse,
    CureRequest,
    GcodeRequest,
    ManualResultResponse,
    MoveDeltaRequest,
    MoveRequest,
    SimpleMessage,
    StartPrintRequest,
)
from nanodlp_bridge.services.control_command_service import ControlCommandService

router = APIRouter()


@router.post(
    "/print/start",
    response_model=SimpleMessage,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Start printing a plate",
)
async def start_print(
    payload: StartPrintRequest,
    control: ControlCommandService = Depends(get_control_service),
) -> SimpleMessage:
    await control.start_print(payload.path)
    return SimpleMessage(success=True, message="Print started")


@router.post("/print/cancel", response_model=SimpleMessage, summary="Cancel the running print")
async def cancel_print(control: ControlCommandService = Depends(get_control_service)) -> SimpleMessage:
    await control.cancel_print()
    return SimpleMessage(success=True, message="Cancel requested")


@router.post("/print/pause", response_model=SimpleMessage, summary="Pause the running print")
async def pause_print(control: ControlCommandService = Depends(get_control_service)) -> SimpleMessage:
    await control.pause_print()
    return SimpleMessage(success=True, message="Pause requested")


@router.post("/print/resume", response_model=SimpleMessage, summary="Resume a paused print")
async def resume_print(control: ControlCommandService = Depends(get_control_service)) -> SimpleMessage:
    await control.resume_print()
    return SimpleMessage(success=True, message="Resume requested")


@router.post("/emergency-stop", response_model=ManualResultResponse, summary="Force-stop the printer")
async def emergency_stop(control: ControlCommandService = Depends(get_control_service)) -> dict:
    return (await control.emergency_stop()).to_dict()


@router.post("/move", response_model=ManualResultResponse, summary="Move Z to an absolute height")
async def move(
    payload: MoveRequest,
    control: ControlCommandService = Depends(get_control_service),
) -> dict:
    return (await control.move(payload.height)).to_dict()


@router.post("/move-delta", response_model=ManualResultResponse, summary="Move Z by a relative distance")
async def move_delta(
    payload: MoveDeltaRequest,
    control: ControlCommandService = Depends(get_control_service),
) -> dict:
    return (await control.move_delta(payload.delta_mm)).to_dict()


@router.get("/move/capabilities", response_model=CapabilityResponse, summary="Whether Z limit moves are supported")
async def move_capabilities(control: ControlCommandService = Depends(get_control_service)) -> CapabilityResponse:
    return CapabilityResponse(
        can_move_to_top=await control.can_move_to_top(),
        can_move_to_floor=await control.can_move_to_floor(),
    )


@router.post("/move/top", response_model=ManualResultResponse, summary="Move Z to the top limit")
async def move_to_top(control: ControlCommandService = Depends(get_control_service)) -> dict:
    return (await control.move_to_top()).to_dict()


@router.post("/move/floor", response_model=ManualResultResponse, summary="Move Z to the floor")
async def move_to_floor(control: ControlCommandService = Depends(get_control_service)) -> dict:
    return (await control.move_to_floor()).to_dict()


@router.post("/home", response_model=ManualResultResponse, summary="Home (calibrate) the Z axis")
async def manual_home(control: ControlCommandService = Depends(get_control_service)) -> dict:
    return (await control.manual_home()).to_dict()


@router.post("/cure", response_model=ManualResultResponse, summary="Switch the projector on or blank it")
async def manual_cure(
    payload: CureRequest,
    control: ControlCommandService = Depends(get_control_service),
) -> dict:
    return (await control.manual_cure(payload.cure)).to_dict()


@router.post("/gcode", response_model=ManualResultResponse, summary="Send a raw G-code line")
async def manual_gcode(
    payload: GcodeRequest,
    control: ControlCommandService = Depends(get_control_service),
) -> dict:
    return (await control.manual_command(payload.command)).to_dict()
