#!/usr/bin/env python3
"""
HTTP control surface for connected LEGO hubs.

Every endpoint except /health requires an API key (see middleware.auth).
Hubs are addressed by their BLE address and ports by name ("A") or id ("0").
"""
import time
from contextlib import asynccontextmanager
from typing import List

from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from config import get_settings
from devices.motor import Motor
from errors import DeviceDetachedError, HubCapacityError, HubNotConnectedError
from hubs.hub import Hub
from middleware.auth import require_api_key
from servers.lego_service import LegoService
from utils.constants import APP_VERSION
from utils.logging_config import get_logger, setup_logging

logger = get_logger(__name__)
settings = get_settings()


def get_service() -> LegoService:
    return LegoService()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting hub control API")
    yield
    logger.info("Shutting down, disconnecting hubs...")
    await get_service().disconnect_all()


app = FastAPI(title="LEGO Hub Control API", version=APP_VERSION, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class ScanRequest(BaseModel):
    timeout: float = Field(default=settings.scan_timeout, gt=0, le=60)


class MotorPowerCommand(BaseModel):
    power: int = Field(..., ge=-100, le=100)  # Ensures power is between -100 and 100


def _get_hub(service: LegoService, address: str) -> Hub:
    hub = service.get_hub(address)
    if hub is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Hub {address} not connected")
    return hub


def _get_motor(hub: Hub, port: str) -> Motor:
    device = hub.registry.lookup_by_name(port)
    if device is None and port.isdigit():
        device = hub.registry.lookup_by_port_id(int(port))
    if device is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No device attached to port {port} on hub {hub.address}",
        )
    if not device.is_motor:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Device on port {port} is a {device.type_name}, not a motor",
        )
    return device


def _run_motor_command(hub: Hub, port: str, action) -> dict:
    motor = _get_motor(hub, port)
    try:
        action(motor)
    except (HubNotConnectedError, DeviceDetachedError) as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.detail)
    return {"status": "success", "device": motor.to_dict()}


@app.get("/health")
async def health(service: LegoService = Depends(get_service)):
    return {
        "status": "healthy",
        "timestamp": time.time(),
        "version": APP_VERSION,
        "connected_hubs": len(service.connected_hubs),
        "authentication_enabled": settings.require_auth,
    }


@app.get("/hubs")
async def list_hubs(
    authenticated: bool = Depends(require_api_key),
    service: LegoService = Depends(get_service),
):
    hubs = [hub.to_dict() for hub in service.connected_hubs]
    return {"connected_hubs": len(hubs), "hubs": hubs}


@app.get("/hubs/{address}")
async def get_hub(
    address: str,
    authenticated: bool = Depends(require_api_key),
    service: LegoService = Depends(get_service),
):
    return _get_hub(service, address).to_dict()


@app.post("/hubs/scan")
async def scan_hubs(
    request: ScanRequest = ScanRequest(),
    authenticated: bool = Depends(require_api_key),
    service: LegoService = Depends(get_service),
):
    try:
        hubs: List[Hub] = await service.scan_and_connect(request.timeout)
    except HubCapacityError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.detail)
    except Exception as e:
        logger.error(f"Scan failed: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    return {"connected": [hub.to_dict() for hub in hubs]}


@app.post("/hubs/{address}/disconnect")
async def disconnect_hub(
    address: str,
    authenticated: bool = Depends(require_api_key),
    service: LegoService = Depends(get_service),
):
    _get_hub(service, address)
    await service.disconnect(address)
    return {"status": "success"}


@app.post("/hubs/{address}/ports/{port}/power")
async def set_motor_power(
    address: str,
    port: str,
    command: MotorPowerCommand,
    authenticated: bool = Depends(require_api_key),
    service: LegoService = Depends(get_service),
):
    hub = _get_hub(service, address)
    return _run_motor_command(hub, port, lambda motor: motor.set_power(command.power))


@app.post("/hubs/{address}/ports/{port}/stop")
async def stop_motor(
    address: str,
    port: str,
    authenticated: bool = Depends(require_api_key),
    service: LegoService = Depends(get_service),
):
    hub = _get_hub(service, address)
    return _run_motor_command(hub, port, lambda motor: motor.stop())


@app.post("/hubs/{address}/ports/{port}/brake")
async def brake_motor(
    address: str,
    port: str,
    authenticated: bool = Depends(require_api_key),
    service: LegoService = Depends(get_service),
):
    hub = _get_hub(service, address)
    return _run_motor_command(hub, port, lambda motor: motor.brake())


if __name__ == "__main__":
    import uvicorn

    setup_logging(settings.log_level, settings.log_format, settings.log_file)
    uvicorn.run(app, host=settings.host, port=settings.port)
