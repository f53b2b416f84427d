"""
Operation catalog: (resource, operation) → request descriptor template.

One closed table replaces per-operation branching.  Each entry names the
HTTP method, a path template whose ``{placeholders}`` are filled from the
operation parameters (URL-encoded), the parameters that must be present,
and optional builders for the JSON body and the query string.

The login operation is listed for completeness but is executed through
:func:`homebridge_api.auth.authenticate`, not through the generic pipeline.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence
from urllib.parse import quote

from .errors import ErrorKind, HomebridgeError
from .models import RequestDescriptor
from .parser import is_missing, parse_json_parameter, validate_required_parameters

Builder = Callable[[Mapping[str, Any]], Any]

PLACEHOLDER = re.compile(r"\{(\w+)\}")


@dataclass(frozen=True)
class OperationSpec:
    method: str
    path: str
    required: tuple[str, ...] = ()
    body: Builder | None = None
    query: Builder | None = None
    authenticated: bool = True

    @property
    def path_params(self) -> tuple[str, ...]:
        return tuple(PLACEHOLDER.findall(self.path))


# ---------------------------------------------------------------------------
# Body / query builders
# ---------------------------------------------------------------------------

def _pick(*names: str) -> Builder:
    """Body with the named parameters that were supplied."""
    def build(params: Mapping[str, Any]) -> dict:
        return {n: params[n] for n in names if n in params and not is_missing(params[n])}
    return build


def _query_flag(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _query(*names: str) -> Builder:
    def build(params: Mapping[str, Any]) -> dict:
        return {n: _query_flag(params[n]) for n in names if n in params and not is_missing(params[n])}
    return build


def _json_param(name: str) -> Builder:
    def build(params: Mapping[str, Any]) -> Any:
        return parse_json_parameter(params.get(name), name)
    return build


def _user_body(params: Mapping[str, Any]) -> dict:
    body = _pick("name", "username", "password")(params)
    body["admin"] = bool(params.get("admin", False))
    return body


def _collection_entries(params: Mapping[str, Any], name: str, entry_key: str) -> list:
    """
    Return the entries of a repeatable collection parameter.

    Accepts a plain list or the grouped form ``{entry_key: [...]}``.
    """
    value = params.get(name) or []
    if isinstance(value, Mapping):
        value = value.get(entry_key) or []
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise HomebridgeError(
            ErrorKind.INVALID_PARAMETER,
            f'Parameter "{name}" must be a list.',
            description=name,
        )
    return list(value)


def _bridge_adapters(params: Mapping[str, Any]) -> dict:
    names = []
    for entry in _collection_entries(params, "adapters", "adapter"):
        # plain names or {"name": ...} entries
        adapter = entry.get("name") if isinstance(entry, Mapping) else entry
        if is_missing(adapter):
            raise HomebridgeError(
                ErrorKind.INVALID_PARAMETER,
                'Every entry of "adapters" needs a name.',
                description="adapters",
            )
        names.append(adapter)
    return {"adapters": names}


def _cached_accessories(params: Mapping[str, Any]) -> list:
    body = []
    for entry in _collection_entries(params, "accessories", "accessory"):
        if not isinstance(entry, Mapping) or is_missing(entry.get("uuid")):
            raise HomebridgeError(
                ErrorKind.INVALID_PARAMETER,
                'Every entry of "accessories" needs a uuid.',
                description="accessories",
            )
        body.append({"uuid": entry["uuid"], "cacheFile": entry.get("cacheFile", "")})
    return body


def _startup_settings(params: Mapping[str, Any]) -> Any:
    settings = params.get("startupSettings") or {}
    return parse_json_parameter(settings, "startupSettings") if isinstance(settings, str) else settings


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

OPERATIONS: dict[tuple[str, str], OperationSpec] = {
    # ── Authentication ─────────────────────────────────────────────────────
    ("auth", "login"): OperationSpec("POST", "/api/auth/login", authenticated=False),
    ("auth", "getSettings"): OperationSpec("GET", "/api/auth/settings"),
    ("auth", "noAuth"): OperationSpec("POST", "/api/auth/noauth"),
    ("auth", "checkAuth"): OperationSpec("GET", "/api/auth/check"),

    # ── Server ─────────────────────────────────────────────────────────────
    ("server", "restart"): OperationSpec("PUT", "/api/server/restart"),
    ("server", "restartChild"): OperationSpec("PUT", "/api/server/restart/{deviceId}", ("deviceId",)),
    ("server", "stopChild"): OperationSpec("PUT", "/api/server/stop/{deviceId}", ("deviceId",)),
    ("server", "startChild"): OperationSpec("PUT", "/api/server/start/{deviceId}", ("deviceId",)),
    ("server", "getPairing"): OperationSpec("GET", "/api/server/pairing"),
    ("server", "resetAccessory"): OperationSpec("PUT", "/api/server/reset-homebridge-accessory"),
    ("server", "resetCache"): OperationSpec("PUT", "/api/server/reset-cached-accessories"),
    ("server", "getCachedAccessories"): OperationSpec("GET", "/api/server/cached-accessories"),
    ("server", "deleteCachedAccessories"): OperationSpec(
        "DELETE", "/api/server/cached-accessories", ("accessories",), body=_cached_accessories,
    ),
    ("server", "deleteCachedAccessory"): OperationSpec(
        "DELETE", "/api/server/cached-accessories/{uuid}", ("uuid",), query=_query("cacheFile"),
    ),
    ("server", "getDevicePairings"): OperationSpec("GET", "/api/server/pairings"),
    ("server", "getDevicePairing"): OperationSpec("GET", "/api/server/pairings/{deviceId}", ("deviceId",)),
    ("server", "deleteDevicePairing"): OperationSpec(
        "DELETE", "/api/server/pairings/{deviceId}", ("deviceId",), query=_query("resetPairingInfo"),
    ),
    ("server", "getUnusedPort"): OperationSpec("GET", "/api/server/port/new"),
    ("server", "getNetworkInterfaces"): OperationSpec("GET", "/api/server/network-interfaces/system"),
    ("server", "getBridgeNetworkInterfaces"): OperationSpec("GET", "/api/server/network-interfaces/bridge"),
    ("server", "setBridgeNetworkInterfaces"): OperationSpec(
        "PUT", "/api/server/network-interfaces/bridge", body=_bridge_adapters,
    ),

    # ── Config editor ──────────────────────────────────────────────────────
    ("config", "getConfig"): OperationSpec("GET", "/api/config-editor"),
    ("config", "updateConfig"): OperationSpec(
        "POST", "/api/config-editor", ("config",), body=_json_param("config"),
    ),
    ("config", "getPluginConfig"): OperationSpec(
        "GET", "/api/config-editor/plugin/{pluginName}", ("pluginName",),
    ),
    ("config", "updatePluginConfig"): OperationSpec(
        "POST", "/api/config-editor/plugin/{pluginName}", ("pluginName", "pluginConfig"),
        body=_json_param("pluginConfig"),
    ),
    ("config", "disablePlugin"): OperationSpec(
        "PUT", "/api/config-editor/plugin/{pluginName}/disable", ("pluginName",),
    ),
    ("config", "enablePlugin"): OperationSpec(
        "PUT", "/api/config-editor/plugin/{pluginName}/enable", ("pluginName",),
    ),
    ("config", "listBackups"): OperationSpec("GET", "/api/config-editor/backups"),
    ("config", "getBackup"): OperationSpec("GET", "/api/config-editor/backups/{backupId}", ("backupId",)),
    ("config", "deleteAllBackups"): OperationSpec("DELETE", "/api/config-editor/backups"),

    # ── Plugins ────────────────────────────────────────────────────────────
    ("plugins", "listInstalled"): OperationSpec("GET", "/api/plugins"),
    ("plugins", "search"): OperationSpec("GET", "/api/plugins/search/{query}", ("query",)),
    ("plugins", "lookup"): OperationSpec("GET", "/api/plugins/lookup/{pluginName}", ("pluginName",)),
    ("plugins", "getVersions"): OperationSpec(
        "GET", "/api/plugins/lookup/{pluginName}/versions", ("pluginName",),
    ),
    ("plugins", "getConfigSchema"): OperationSpec(
        "GET", "/api/plugins/config-schema/{pluginName}", ("pluginName",),
    ),
    ("plugins", "getChangelog"): OperationSpec("GET", "/api/plugins/changelog/{pluginName}", ("pluginName",)),
    ("plugins", "getRelease"): OperationSpec("GET", "/api/plugins/release/{pluginName}", ("pluginName",)),
    ("plugins", "getAlias"): OperationSpec("GET", "/api/plugins/alias/{pluginName}", ("pluginName",)),

    # ── Accessories ────────────────────────────────────────────────────────
    ("accessories", "list"): OperationSpec("GET", "/api/accessories"),
    ("accessories", "getLayout"): OperationSpec("GET", "/api/accessories/layout"),
    ("accessories", "getAccessory"): OperationSpec("GET", "/api/accessories/{uniqueId}", ("uniqueId",)),
    ("accessories", "setCharacteristic"): OperationSpec(
        "PUT", "/api/accessories/{uniqueId}", ("uniqueId", "characteristicType", "value"),
        body=_pick("characteristicType", "value"),
    ),

    # ── Users ──────────────────────────────────────────────────────────────
    ("users", "list"): OperationSpec("GET", "/api/users"),
    ("users", "create"): OperationSpec(
        "POST", "/api/users", ("name", "username", "password"), body=_user_body,
    ),
    ("users", "update"): OperationSpec(
        "PATCH", "/api/users/{userId}", ("userId", "name", "username"), body=_user_body,
    ),
    ("users", "delete"): OperationSpec("DELETE", "/api/users/{userId}", ("userId",)),
    ("users", "changePassword"): OperationSpec(
        "POST", "/api/users/change-password", ("currentPassword", "newPassword"),
        body=_pick("currentPassword", "newPassword"),
    ),
    ("users", "setupOTP"): OperationSpec("POST", "/api/users/otp/setup"),
    ("users", "activateOTP"): OperationSpec("POST", "/api/users/otp/activate", ("code",), body=_pick("code")),
    ("users", "deactivateOTP"): OperationSpec(
        "POST", "/api/users/otp/deactivate", ("otpPassword",),
        body=lambda params: {"password": params["otpPassword"]},
    ),

    # ── Status ─────────────────────────────────────────────────────────────
    ("status", "getCPU"): OperationSpec("GET", "/api/status/cpu"),
    ("status", "getRAM"): OperationSpec("GET", "/api/status/ram"),
    ("status", "getNetwork"): OperationSpec("GET", "/api/status/network"),
    ("status", "getUptime"): OperationSpec("GET", "/api/status/uptime"),
    ("status", "getHomebridgeStatus"): OperationSpec("GET", "/api/status/homebridge"),
    ("status", "getChildBridges"): OperationSpec("GET", "/api/status/homebridge/child-bridges"),
    ("status", "getHomebridgeVersion"): OperationSpec("GET", "/api/status/homebridge-version"),
    ("status", "getServerInfo"): OperationSpec("GET", "/api/status/server-information"),
    ("status", "getNodeInfo"): OperationSpec("GET", "/api/status/nodejs"),
    ("status", "getRPiThrottled"): OperationSpec("GET", "/api/status/rpi/throttled"),

    # ── Platform tools ─────────────────────────────────────────────────────
    ("platform", "restartHost"): OperationSpec("PUT", "/api/platform-tools/linux/restart-host"),
    ("platform", "shutdownHost"): OperationSpec("PUT", "/api/platform-tools/linux/shutdown-host"),
    ("platform", "getDockerStartup"): OperationSpec("GET", "/api/platform-tools/docker/startup-script"),
    ("platform", "updateDockerStartup"): OperationSpec("PUT", "/api/platform-tools/docker/startup-script"),
    ("platform", "restartDockerContainer"): OperationSpec(
        "PUT", "/api/platform-tools/docker/restart-container",
    ),
    ("platform", "getHBServiceSettings"): OperationSpec(
        "GET", "/api/platform-tools/hb-service/homebridge-startup-settings",
    ),
    ("platform", "setHBServiceSettings"): OperationSpec(
        "PUT", "/api/platform-tools/hb-service/homebridge-startup-settings", body=_startup_settings,
    ),
    ("platform", "downloadLogFile"): OperationSpec(
        "GET", "/api/platform-tools/hb-service/log/download", query=_query("colour"),
    ),
    ("platform", "truncateLogFile"): OperationSpec("PUT", "/api/platform-tools/hb-service/log/truncate"),

    # ── Backup & restore ───────────────────────────────────────────────────
    ("backup", "createBackup"): OperationSpec("POST", "/api/backup"),
    ("backup", "downloadBackup"): OperationSpec("GET", "/api/backup/download"),
    ("backup", "getNextBackupTime"): OperationSpec("GET", "/api/backup/scheduled-backups/next"),
    ("backup", "listScheduledBackups"): OperationSpec("GET", "/api/backup/scheduled-backups"),
    ("backup", "getScheduledBackup"): OperationSpec(
        "GET", "/api/backup/scheduled-backups/{backupId}", ("backupId",),
    ),
    ("backup", "deleteScheduledBackup"): OperationSpec(
        "DELETE", "/api/backup/scheduled-backups/{backupId}", ("backupId",),
    ),
    ("backup", "restoreScheduledBackup"): OperationSpec(
        "POST", "/api/backup/scheduled-backups/{backupId}/restore", ("backupId",),
    ),
    ("backup", "triggerRestore"): OperationSpec("PUT", "/api/backup/restore/trigger"),
    ("backup", "postBackupRestart"): OperationSpec("PUT", "/api/backup/restart"),

    # ── Setup wizard ───────────────────────────────────────────────────────
    ("setup", "createFirstUser"): OperationSpec(
        "POST", "/api/setup-wizard/create-first-user", ("name", "username", "password"),
        body=_user_body,
    ),
    ("setup", "getSetupToken"): OperationSpec("GET", "/api/setup-wizard/get-setup-wizard-token"),
}

RESOURCES: tuple[str, ...] = tuple(sorted({resource for resource, _ in OPERATIONS}))


# ---------------------------------------------------------------------------
# Lookup and request building
# ---------------------------------------------------------------------------

def get_operation(resource: str, operation: str) -> OperationSpec:
    """
    Look up a catalog entry.

    Raises:
        HomebridgeError: ``UNKNOWN_OPERATION`` for pairs not in the catalog.
    """
    try:
        return OPERATIONS[(resource, operation)]
    except KeyError:
        raise HomebridgeError(
            ErrorKind.UNKNOWN_OPERATION,
            f"Unknown operation '{operation}' for resource '{resource}'.",
            description=f"Known resources: {', '.join(RESOURCES)}",
        ) from None


def list_operations(resource: str | None = None) -> list[tuple[str, str]]:
    """All (resource, operation) pairs, optionally restricted to one resource."""
    return [key for key in OPERATIONS if resource is None or key[0] == resource]


def render_path(template: str, params: Mapping[str, Any]) -> str:
    """Substitute ``{name}`` placeholders with URL-encoded parameter values."""
    return PLACEHOLDER.sub(lambda m: quote(str(params[m.group(1)]), safe=""), template)


def build_request(
    resource: str,
    operation: str,
    params: Mapping[str, Any] | None = None,
) -> RequestDescriptor:
    """
    Resolve a catalog entry into a ready-to-send RequestDescriptor.

    Args:
        resource: Resource name (e.g. ``"accessories"``).
        operation: Operation name (e.g. ``"getAccessory"``).
        params: Operation parameters supplied by the workflow author.

    Returns:
        :class:`RequestDescriptor` with placeholders filled in.

    Raises:
        HomebridgeError: ``UNKNOWN_OPERATION`` or ``INVALID_PARAMETER``.
    """
    params = dict(params or {})
    spec = get_operation(resource, operation)

    required = dict.fromkeys(spec.required + spec.path_params)
    validate_required_parameters({name: params.get(name) for name in required})

    body = spec.body(params) if spec.body else None
    query = spec.query(params) if spec.query else {}

    return RequestDescriptor(
        method=spec.method,
        path=render_path(spec.path, params),
        body=body,
        query=query,
    )
