"""LiveU Central adapter providing authenticated REST helpers."""

from __future__ import annotations

import asyncio
import base64
import json
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

import aiohttp

from ..config import LiveuConfig
from ..core import BatterySnapshot, Delay, ModemInterface, VideoState

LOGGER = logging.getLogger(__name__)

# Port labels reported by the unit, mapped to the [custom_port_names] keys.
_PORT_ALIASES: Dict[str, str] = {
    "eth0": "ethernet",
    "wlan0": "wifi",
    "2": "usb1",
    "3": "usb2",
    "4": "usb3",
    "5": "usb4",
    "6": "usb5",
    "7": "usb6",
}


class LiveuError(RuntimeError):
    """Raised when a LiveU API request fails or returns an unexpected payload."""

    def __init__(self, message: str, *, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class LiveuAuthenticationError(LiveuError):
    """Raised when LiveU rejects the configured login."""


class LiveuClient:
    """Non-blocking client for the LiveU Central REST API."""

    def __init__(
        self,
        config: LiveuConfig,
        *,
        custom_port_names: Optional[Mapping[str, str]] = None,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = 10.0,
    ) -> None:
        self.config = config
        self._base_url = config.base_url.rstrip("/")
        self._custom_port_names = {
            key.lower(): value for key, value in (custom_port_names or {}).items()
        }
        self._session = session
        self._owns_session = session is None
        self._timeout = timeout
        self._access_token: Optional[str] = None
        self._auth_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------
    async def authenticate(self) -> None:
        """Log in with the configured credentials and store the access token.

        Raises:
            LiveuAuthenticationError: If the login is rejected.
            LiveuError: If the auth endpoint cannot be reached.
        """
        session = await self._ensure_session()
        headers = {
            "application-id": self.config.application_id,
            "Authorization": _basic_auth(self.config.email, self.config.password),
        }
        body = {"return_to": "https://solo.liveu.tv/#/dashboard/units"}

        try:
            async with asyncio.timeout(self._timeout):
                async with session.post(
                    self.config.auth_url, json=body, headers=headers
                ) as response:
                    if response.status in (401, 403):
                        raise LiveuAuthenticationError(
                            "LiveU rejected the login, check email and password",
                            status=response.status,
                        )
                    if response.status >= 400:
                        detail = await response.text()
                        raise LiveuError(
                            f"LiveU login failed with status {response.status}: {detail.strip()}",
                            status=response.status,
                        )
                    payload = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise LiveuError(f"LiveU login request failed: {exc}") from exc

        token = _extract_access_token(payload)
        if not token:
            raise LiveuAuthenticationError("LiveU login response has no access token")

        self._access_token = token
        LOGGER.info("Authenticated with LiveU as %s", self.config.email)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def get_inventories(self) -> Dict[str, Any]:
        return _as_mapping(await self._request("GET", "/inventories"))

    async def resolve_unit_id(self) -> str:
        """Return the configured unit id or the first unit in the inventory."""
        if self.config.id:
            return self.config.id
        unit_id = select_unit_id(await self.get_inventories())
        LOGGER.info("Using LiveU unit %s from inventory", unit_id)
        return unit_id

    async def list_interfaces(self, unit_id: str) -> List[ModemInterface]:
        payload = await self._request("GET", f"/units/{unit_id}/status/interfaces")
        if not isinstance(payload, list):
            raise LiveuError("Unexpected interfaces payload from LiveU")
        return [
            self._rename(_parse_interface(item))
            for item in payload
            if isinstance(item, Mapping)
        ]

    async def get_battery(self, unit_id: str) -> BatterySnapshot:
        data = _as_mapping(
            await self._request("GET", f"/units/{unit_id}/status/battery")
        )
        try:
            return BatterySnapshot(
                connected=bool(data.get("connected", False)),
                percentage=int(data["percentage"]),
                minutes_to_empty=int(data.get("runTimeToEmpty") or 0),
                charging=bool(data.get("charging", False)),
                discharging=bool(data.get("discharging", False)),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise LiveuError(f"Unexpected battery payload from LiveU: {exc}") from exc

    async def get_video(self, unit_id: str) -> VideoState:
        data = _as_mapping(await self._request("GET", f"/units/{unit_id}/video"))
        bitrate = data.get("bitrate")
        resolution = data.get("resolution")
        try:
            return VideoState(
                resolution=str(resolution) if resolution else None,
                bitrate=int(bitrate) if bitrate is not None else None,
            )
        except (TypeError, ValueError) as exc:
            raise LiveuError(f"Unexpected video payload from LiveU: {exc}") from exc

    async def is_streaming(self, unit_id: str) -> bool:
        try:
            video = await self.get_video(unit_id)
        except LiveuError as exc:
            LOGGER.debug("Treating unit %s as not streaming: %s", unit_id, exc)
            return False
        return video.has_bitrate

    async def is_idle(self, unit_id: str) -> bool:
        try:
            data = _as_mapping(await self._request("GET", f"/units/{unit_id}/status"))
        except LiveuError as exc:
            LOGGER.debug("Treating unit %s as not idle: %s", unit_id, exc)
            return False
        return str(data.get("state", "")).lower() == "idle"

    async def start_stream(self, unit_id: str) -> None:
        await self._request("POST", f"/units/{unit_id}/stream")

    async def stop_stream(self, unit_id: str) -> None:
        await self._request("DELETE", f"/units/{unit_id}/stream")

    async def reboot_unit(self, unit_id: str) -> None:
        await self._request("POST", f"/units/{unit_id}/reboot")

    async def get_delay(self, unit_id: str) -> Delay:
        return _parse_delay(await self._request("GET", f"/units/{unit_id}/delay"))

    async def set_delay(self, unit_id: str, delay_ms: int) -> Delay:
        payload = await self._request(
            "PUT", f"/units/{unit_id}/delay", body={"delay": delay_ms}
        )
        if payload is None:
            return Delay(delay=delay_ms)
        return _parse_delay(payload)

    async def aclose(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    def _headers(self) -> Dict[str, str]:
        headers = {
            "application-id": self.config.application_id,
            "Accept": "application/json",
        }
        if self._access_token:
            headers["Authorization"] = f"Bearer {self._access_token}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        body: Optional[Mapping[str, Any]] = None,
        retry_auth: bool = True,
    ) -> Any:
        if self._access_token is None:
            await self._reauthenticate()

        session = await self._ensure_session()
        url = f"{self._base_url}{path}"
        text = ""

        try:
            async with asyncio.timeout(self._timeout):
                async with session.request(
                    method, url, json=body, headers=self._headers()
                ) as response:
                    status = response.status
                    if status >= 400 and not (status == 401 and retry_auth):
                        detail = await response.text()
                        raise LiveuError(
                            f"LiveU {method} {path} failed with status {status}: {detail.strip()}",
                            status=status,
                        )
                    if status < 400:
                        text = await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise LiveuError(f"LiveU {method} {path} failed: {exc}") from exc

        if status == 401:
            LOGGER.info("LiveU access token expired; re-authenticating")
            self._access_token = None
            return await self._request(method, path, body=body, retry_auth=False)

        if not text.strip():
            return None
        try:
            payload = json.loads(text)
        except ValueError as exc:
            raise LiveuError(f"LiveU {method} {path} returned invalid JSON") from exc
        return _unwrap(payload)

    async def _reauthenticate(self) -> None:
        async with self._auth_lock:
            if self._access_token is None:
                await self.authenticate()

    def _rename(self, interface: ModemInterface) -> ModemInterface:
        if not self._custom_port_names:
            return interface

        port = interface.port
        key = _PORT_ALIASES.get(port.lower(), port.lower())
        name = self._custom_port_names.get(key) or self._custom_port_names.get(
            port.lower()
        )
        if not name:
            return interface
        return ModemInterface(
            port=name,
            uplink_kbps=interface.uplink_kbps,
            connected=interface.connected,
            enabled=interface.enabled,
            technology=interface.technology,
            is_roaming=interface.is_roaming,
        )


def select_unit_id(inventories: Mapping[str, Any]) -> str:
    """Pick the unit to control from an inventory payload."""

    units = inventories.get("units")
    if isinstance(units, Sequence):
        for unit in units:
            if isinstance(unit, Mapping) and unit.get("id"):
                return str(unit["id"])
    raise LiveuError("No LiveU units found in inventory")


def _basic_auth(email: str, password: str) -> str:
    token = base64.b64encode(f"{email}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


def _parse_interface(item: Mapping[str, Any]) -> ModemInterface:
    try:
        uplink_kbps = int(item.get("uplinkKbps") or 0)
    except (TypeError, ValueError) as exc:
        raise LiveuError(f"Unexpected interface payload from LiveU: {exc}") from exc
    return ModemInterface(
        port=str(item.get("port", "")),
        uplink_kbps=uplink_kbps,
        connected=bool(item.get("connected", False)),
        enabled=bool(item.get("enabled", False)),
        technology=str(item.get("technology") or ""),
        is_roaming=bool(item.get("isCurrentlyRoaming", False)),
    )


def _parse_delay(payload: Any) -> Delay:
    data = _as_mapping(payload)
    try:
        return Delay(delay=int(data["delay"]))
    except (KeyError, TypeError, ValueError) as exc:
        raise LiveuError(f"Unexpected delay payload from LiveU: {exc}") from exc


def _extract_access_token(payload: Any) -> Optional[str]:
    if not isinstance(payload, Mapping):
        return None
    data = payload.get("data")
    if isinstance(data, Mapping):
        response = data.get("response")
        if isinstance(response, Mapping) and response.get("access_token"):
            return str(response["access_token"])
    token = payload.get("access_token")
    return str(token) if token else None


def _unwrap(payload: Any) -> Any:
    if isinstance(payload, Mapping) and "data" in payload:
        return payload["data"]
    return payload


def _as_mapping(payload: Any) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise LiveuError("Unexpected payload from LiveU")
    return payload


