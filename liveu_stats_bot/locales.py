"""Chat-visible strings in every supported language."""

from __future__ import annotations

import logging
from typing import Dict

LOGGER = logging.getLogger(__name__)

DEFAULT_LANG = "en"

_EN: Dict[str, str] = {
    "monitor.prefix": "LiveU: ",
    "monitor.new_modem.one": "new modem connected: {ports}. ",
    "monitor.new_modem.other": "new modems connected: {ports}. ",
    "monitor.removed_modem.one": "modem disconnected: {ports}. ",
    "monitor.removed_modem.other": "modems disconnected: {ports}. ",
    "monitor.power_lost": "LiveU: external power lost, running on internal battery",
    "monitor.now_charging": "LiveU: external power connected, now charging",
    "monitor.too_hot": "LiveU: battery too hot to charge",
    "monitor.fully_charged": "LiveU: battery fully charged",
    "monitor.battery_percentage": "LiveU: internal battery at {percent}%, {state}",
    "monitor.charging": "charging",
    "monitor.not_charging": "not charging",
    "stats.offline": "LiveU Offline :(",
    "stats.online_ready": "LiveU Online and Ready",
    "stats.modem": "{port}: {bitrate} Kbps{technology}{roaming}, ",
    "stats.roaming": " roaming",
    "stats.total": "Total LRT: {bitrate} Kbps",
    "stats.srt": ", SRT: {bitrate} Kbps",
    "stats.rtmp": ", RTMP: {bitrate} Kbps",
    "battery.message": "LiveU Internal Battery: {percentage}% {state}",
    "battery.charging": "charging",
    "battery.fully_charged": "fully charged",
    "battery.fully_charged_connected": "fully charged, connected",
    "battery.too_hot": "too hot to charge",
    "battery.not_charging": "not charging",
    "battery.estimate": "Estimated battery time: {time}",
    "start.no_camera": "LiveU no camera plugged in",
    "start.already_streaming": "LiveU already streaming",
    "start.starting": "LiveU starting stream",
    "stop.already_stopped": "LiveU already stopped",
    "stop.stopping": "LiveU stopping stream",
    "restart.not_streaming": "LiveU not streaming",
    "restart.restarting": "LiveU stream restarting",
    "reboot.rebooting": "LiveU Rebooting, please wait approximately 2-3 minutes",
    "reboot.too_long": "LiveU took too long to reboot",
    "reboot.success": "LiveU rebooted successfully",
    "delay.high_resiliency": "LiveU high resiliency mode",
    "delay.low_delay": "LiveU low delay mode",
    "request.error": "LiveU request error",
    "confirm.started": "started",
    "confirm.starting": "starting",
    "confirm.stopped": "stopped",
    "confirm.stopping": "stopping",
    "confirm.success": "LiveU streaming {action} successfully",
    "confirm.timeout": "LiveU {action} stream took too long, might not have worked",
}

_DE: Dict[str, str] = {
    "monitor.new_modem.one": "neues Modem verbunden: {ports}. ",
    "monitor.new_modem.other": "neue Modems verbunden: {ports}. ",
    "monitor.removed_modem.one": "Modem getrennt: {ports}. ",
    "monitor.removed_modem.other": "Modems getrennt: {ports}. ",
    "monitor.power_lost": "LiveU: externe Stromversorgung verloren, läuft auf interner Batterie",
    "monitor.now_charging": "LiveU: externe Stromversorgung verbunden, lädt jetzt",
    "monitor.too_hot": "LiveU: Batterie zu heiß zum Laden",
    "monitor.fully_charged": "LiveU: Batterie vollständig geladen",
    "monitor.battery_percentage": "LiveU: interne Batterie bei {percent}%, {state}",
    "monitor.charging": "lädt",
    "monitor.not_charging": "lädt nicht",
    "stats.offline": "LiveU Offline :(",
    "stats.online_ready": "LiveU online und bereit",
    "stats.roaming": " Roaming",
    "battery.message": "LiveU interne Batterie: {percentage}% {state}",
    "battery.charging": "lädt",
    "battery.fully_charged": "vollständig geladen",
    "battery.fully_charged_connected": "vollständig geladen, verbunden",
    "battery.too_hot": "zu heiß zum Laden",
    "battery.not_charging": "lädt nicht",
    "battery.estimate": "Geschätzte Laufzeit: {time}",
    "start.no_camera": "LiveU keine Kamera angeschlossen",
    "start.already_streaming": "LiveU streamt bereits",
    "start.starting": "LiveU startet den Stream",
    "stop.already_stopped": "LiveU bereits gestoppt",
    "stop.stopping": "LiveU stoppt den Stream",
    "restart.not_streaming": "LiveU streamt nicht",
    "restart.restarting": "LiveU Stream wird neu gestartet",
    "reboot.rebooting": "LiveU startet neu, bitte etwa 2-3 Minuten warten",
    "reboot.too_long": "LiveU Neustart hat zu lange gedauert",
    "reboot.success": "LiveU erfolgreich neu gestartet",
    "delay.high_resiliency": "LiveU Modus hohe Stabilität",
    "delay.low_delay": "LiveU Modus geringe Verzögerung",
    "request.error": "LiveU Anfragefehler",
    "confirm.started": "gestartet",
    "confirm.starting": "Starten",
    "confirm.stopped": "gestoppt",
    "confirm.stopping": "Stoppen",
    "confirm.success": "LiveU Stream erfolgreich {action}",
    "confirm.timeout": "LiveU {action} des Streams hat zu lange gedauert, hat eventuell nicht funktioniert",
}

LOCALES: Dict[str, Dict[str, str]] = {
    "en": _EN,
    "de": _DE,
}


def translate(key: str, lang: str = DEFAULT_LANG, **params: object) -> str:
    """Look up ``key`` for ``lang``, falling back to English."""

    table = LOCALES.get(lang.lower(), {}) if lang else {}
    template = table.get(key)
    if template is None:
        template = _EN.get(key)
    if template is None:
        LOGGER.warning("Missing translation for %s", key)
        return key
    return template.format(**params) if params else template


def is_supported(lang: str) -> bool:
    return lang.lower() in LOCALES
