"""
Protocol installation reconciler.

Decides what happens when an imported protocol has the same name as one
already installed, and carries that decision out.

    CHECKING -> PROCEED             no sessions use the installed protocol
             -> AWAIT_CONFIRMATION  sessions use it, all of them exported
             -> REJECTED            some session using it is not exported

The reconciler only reads the store and changes it through actions; it
never touches a network. Waiting for a dialog suspends this reconciler
alone, and the store keeps accepting actions meanwhile, so the decision is
evaluated again once the user has answered.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, List, Optional

import structlog

from interviewer.core.exceptions import (
    DuplicateProtocolError,
    InstallationCancelledError,
    ProtocolConflictError,
    ProtocolNotFoundError,
    StorageError,
)
from interviewer.domain.models.actions import DeleteProtocol, InstallProtocolComplete
from interviewer.domain.models.protocol import Protocol
from interviewer.domain.models.session import StoreState
from interviewer.services.dialogs import (
    CONFIRM_DELETE_DIALOG,
    HAS_SESSION_DIALOG,
    NON_EXPORTED_SESSION_DIALOG,
    OVERWRITE_PROTOCOL_DIALOG,
    REINSTALL_NON_EXPORTED_DIALOG,
)
from interviewer.services.protocols import IDialogService, IProtocolStorage
from interviewer.services.session_store import SessionStore

log = structlog.get_logger(__name__)

BACKUP_SUFFIX = ".previous"


class InstallState(str, Enum):
    CHECKING = "checking"
    PROCEED = "proceed"
    AWAIT_CONFIRMATION = "await_confirmation"
    REJECTED = "rejected"


@dataclass(frozen=True)
class SessionUsage:
    """Which sessions reference an installed protocol."""

    session_ids: List[str] = field(default_factory=list)
    not_exported_ids: List[str] = field(default_factory=list)

    @property
    def has_session(self) -> bool:
        return bool(self.session_ids)

    @property
    def has_not_exported_session(self) -> bool:
        return bool(self.not_exported_ids)


@dataclass(frozen=True)
class InstallDecision:
    """Outcome of the CHECKING step for one imported protocol."""

    state: InstallState
    existing_key: Optional[str]
    usage: SessionUsage


@dataclass(frozen=True)
class InstallOutcome:
    """What an install_protocol() call did."""

    state: InstallState
    installed: bool
    key: Optional[str] = None
    removed_session_ids: List[str] = field(default_factory=list)


def find_protocol_key(state: StoreState, name: str) -> Optional[str]:
    """Storage key of the installed protocol with this name.

    Raises:
        DuplicateProtocolError: More than one installed record has the name
    """
    keys = [k for k, p in state.installed_protocols.items() if p.name == name]
    if len(keys) > 1:
        raise DuplicateProtocolError(
            f"Protocol name '{name}' is installed under several keys: {', '.join(sorted(keys))}"
        )
    return keys[0] if keys else None


def session_usage(state: StoreState, protocol_key: Optional[str]) -> SessionUsage:
    if protocol_key is None:
        return SessionUsage()
    using = [s for s in state.sessions.values() if s.protocol_uid == protocol_key]
    return SessionUsage(
        session_ids=[s.session_id for s in using],
        not_exported_ids=[s.session_id for s in using if s.last_exported_at is None],
    )


def evaluate(state: StoreState, protocol: Protocol) -> InstallDecision:
    """The CHECKING step: decide how an imported protocol may be installed.

    Unexported sessions dominate: their presence rejects the install even
    when other sessions using the protocol have been exported.

    Raises:
        DuplicateProtocolError: The name is already installed more than once
        ProtocolConflictError: protocol.uid is the key of a differently
            named protocol
    """
    existing_key = find_protocol_key(state, protocol.name)
    occupant = state.installed_protocols.get(protocol.uid)
    if occupant is not None and occupant.name != protocol.name:
        raise ProtocolConflictError(
            f"Key '{protocol.uid}' already holds protocol '{occupant.name}'"
        )

    usage = session_usage(state, existing_key)

    if usage.has_not_exported_session:
        install_state = InstallState.REJECTED
    elif usage.has_session:
        install_state = InstallState.AWAIT_CONFIRMATION
    else:
        install_state = InstallState.PROCEED

    return InstallDecision(state=install_state, existing_key=existing_key, usage=usage)


class ProtocolReconciler:
    """Installs and deletes protocols against a SessionStore."""

    def __init__(
        self,
        store: SessionStore,
        storage: IProtocolStorage,
        dialogs: IDialogService,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
        lock: Optional[asyncio.Lock] = None,
    ):
        """
        Args:
            store: Store to read and dispatch to
            storage: Protocol asset storage
            dialogs: Where confirmations are asked
            clock: Source of installation dates
            lock: Serializes imports; pass a shared lock when several
                reconcilers (e.g. one per request) serve the same store
        """
        self.store = store
        self.storage = storage
        self.dialogs = dialogs
        self.clock = clock
        self._lock = lock or asyncio.Lock()

    async def install_protocol(self, protocol: Protocol) -> InstallOutcome:
        """
        Install an imported protocol, reconciling it with any installed
        protocol of the same name.

        Args:
            protocol: Imported definition; its assets sit in storage under
                protocol.uid

        Returns:
            InstallOutcome. REJECTED outcomes never install; when the user
            chose to delete the old protocol instead, removed_session_ids
            lists the sessions that went with it.

        Raises:
            InstallationCancelledError: The user declined a dialog
            ProtocolConflictError: Sessions changed while awaiting confirmation
            DuplicateProtocolError: The name is already installed more than once
            StorageError: Asset storage failed; nothing was recorded and the
                installed assets are unchanged
        """
        async with self._lock:
            decision = evaluate(self.store.state, protocol)
            log.info(
                "protocol_install_checked",
                protocol_name=protocol.name,
                decision=decision.state.value,
                existing_key=decision.existing_key,
                sessions=len(decision.usage.session_ids),
                not_exported=len(decision.usage.not_exported_ids),
            )

            if decision.state is InstallState.REJECTED:
                return await self._reject(protocol, decision)

            if decision.state is InstallState.AWAIT_CONFIRMATION:
                await self._confirm(OVERWRITE_PROTOCOL_DIALOG, protocol)
                confirmed = evaluate(self.store.state, protocol)
                if (
                    confirmed.state is InstallState.REJECTED
                    or confirmed.existing_key != decision.existing_key
                ):
                    log.warning(
                        "protocol_install_conflict",
                        protocol_name=protocol.name,
                        decision=confirmed.state.value,
                    )
                    raise ProtocolConflictError(
                        f"Sessions using protocol '{protocol.name}' changed while "
                        "awaiting confirmation; installation aborted."
                    )

            return await self._commit(protocol, decision.existing_key)

    async def _confirm(self, dialog, protocol: Protocol) -> None:
        if not await self.dialogs.open_dialog(dialog):
            log.info("protocol_install_cancelled", protocol_name=protocol.name)
            raise InstallationCancelledError(
                "Installation of this protocol cancelled."
            )

    async def _reject(self, protocol: Protocol, decision: InstallDecision) -> InstallOutcome:
        log.warning(
            "protocol_install_rejected",
            protocol_name=protocol.name,
            existing_key=decision.existing_key,
            not_exported=decision.usage.not_exported_ids,
        )
        await self._confirm(REINSTALL_NON_EXPORTED_DIALOG, protocol)

        removed = session_usage(self.store.state, decision.existing_key).session_ids
        await self._remove_protocol(decision.existing_key)
        return InstallOutcome(
            state=InstallState.REJECTED,
            installed=False,
            key=decision.existing_key,
            removed_session_ids=removed,
        )

    async def _replace_assets(self, source_key: str, target_key: str) -> None:
        """Move the assets at source_key over those at target_key.

        The old assets are set aside under a backup key until the new ones
        are in place, and restored if the move fails, so target_key always
        holds a complete protocol.
        """
        backup_key = f"{target_key}{BACKUP_SUFFIX}"
        had_assets = await self.storage.exists(target_key)
        if had_assets:
            await self.storage.rename(target_key, backup_key)

        try:
            await self.storage.rename(source_key, target_key)
        except Exception:
            if had_assets:
                await self.storage.rename(backup_key, target_key)
                log.warning("protocol_assets_restored", key=target_key)
            raise

        if had_assets:
            try:
                await self.storage.remove_directory(backup_key)
            except StorageError as e:
                log.warning("protocol_backup_not_removed", key=backup_key, error=e.message)

    async def _commit(self, protocol: Protocol, existing_key: Optional[str]) -> InstallOutcome:
        if existing_key is not None and existing_key != protocol.uid:
            # New assets take over the existing key so session references resolve
            await self._replace_assets(protocol.uid, existing_key)
            key = existing_key
        else:
            key = existing_key or protocol.uid

        self.store.dispatch(
            InstallProtocolComplete(protocol=protocol, key=key, installed_at=self.clock())
        )
        log.info(
            "protocol_installed",
            protocol_name=protocol.name,
            key=key,
            reinstall=existing_key is not None,
        )
        return InstallOutcome(state=InstallState.PROCEED, installed=True, key=key)

    async def _remove_protocol(self, protocol_uid: str) -> None:
        # Storage first: a failure leaves the record and its sessions in place
        await self.storage.remove_directory(protocol_uid)
        self.store.dispatch(DeleteProtocol(protocol_uid=protocol_uid))
        log.info("protocol_deleted", protocol_uid=protocol_uid)

    async def delete_protocol(self, protocol_uid: str) -> bool:
        """
        Delete an installed protocol and every session recorded against it.

        Asks first: a warning when unexported sessions would be lost, a
        confirmation naming the sessions otherwise, or a plain confirmation
        when nothing uses the protocol.

        Returns:
            True if the protocol was deleted, False if the user declined

        Raises:
            ProtocolNotFoundError: protocol_uid is not installed
        """
        async with self._lock:
            state = self.store.state
            if protocol_uid not in state.installed_protocols:
                raise ProtocolNotFoundError(f"Protocol {protocol_uid} is not installed")

            usage = session_usage(state, protocol_uid)
            if usage.has_not_exported_session:
                dialog = NON_EXPORTED_SESSION_DIALOG
            elif usage.has_session:
                dialog = HAS_SESSION_DIALOG
            else:
                dialog = CONFIRM_DELETE_DIALOG

            try:
                confirmed = await self.dialogs.open_dialog(dialog)
            except InstallationCancelledError:
                confirmed = False

            if not confirmed:
                log.info("protocol_delete_declined", protocol_uid=protocol_uid)
                return False

            await self._remove_protocol(protocol_uid)
            return True
