"""Wiring of the directory sync engine.

``build_authman_sync_service`` is shared by the FastAPI dependencies and
the scheduler, which opens its own session per run.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from groups.application.observability import (
    AuthmanSyncProbe,
    DefaultAuthmanSyncProbe,
)
from groups.application.services import (
    AuthmanSyncService,
    MembershipReconciler,
    SyncTimesGuard,
)
from groups.infrastructure.authman_gateway import AuthmanDirectoryGateway
from groups.infrastructure.core_identity_resolver import CoreIdentityResolver
from groups.infrastructure.group_repository import GroupRepository
from groups.infrastructure.membership_repository import MembershipRepository
from groups.infrastructure.outbox import GroupsEventSerializer, SyncEffectsPublisher
from groups.infrastructure.sync_repository import (
    ManagedGroupConfigRepository,
    SyncConfigRepository,
    SyncTimesRepository,
)
from groups.ports.gateways import DirectoryGateway, IdentityResolver
from infrastructure.database.dependencies import get_write_session
from infrastructure.outbox.repository import OutboxRepository
from infrastructure.settings import (
    get_authman_settings,
    get_core_settings,
    get_sync_settings,
)


def get_authman_sync_probe() -> AuthmanSyncProbe:
    """Get AuthmanSyncProbe instance.

    Returns:
        DefaultAuthmanSyncProbe instance for observability
    """
    return DefaultAuthmanSyncProbe()


def get_directory_gateway() -> DirectoryGateway:
    """Build the directory gateway from settings."""
    settings = get_authman_settings()
    return AuthmanDirectoryGateway(
        base_url=settings.base_url,
        username=settings.username,
        password=settings.password.get_secret_value(),
        subject_source_id=settings.subject_source_id,
        timeout_seconds=settings.request_timeout_seconds,
    )


def get_identity_resolver() -> IdentityResolver:
    """Build the Core identity resolver from settings."""
    settings = get_core_settings()
    return CoreIdentityResolver(
        base_url=settings.base_url,
        api_key=settings.api_key.get_secret_value(),
        page_size=settings.page_size,
        timeout_seconds=settings.request_timeout_seconds,
    )


def build_authman_sync_service(
    session: AsyncSession,
    directory: DirectoryGateway,
    identity_resolver: IdentityResolver,
    probe: AuthmanSyncProbe | None = None,
) -> AuthmanSyncService:
    """Assemble the sync engine around one session.

    Args:
        session: Session owning every transaction of the pass
        directory: Gateway to the external directory
        identity_resolver: Resolver of external ids to local accounts
        probe: Optional domain probe for observability

    Returns:
        AuthmanSyncService ready to run passes
    """
    sync_settings = get_sync_settings()
    probe = probe or DefaultAuthmanSyncProbe()
    group_repository = GroupRepository(session=session)
    membership_repository = MembershipRepository(session=session)

    guard = SyncTimesGuard(
        session=session,
        group_repository=group_repository,
        sync_times_repository=SyncTimesRepository(session=session),
        sync_config_repository=SyncConfigRepository(session=session),
        default_timeout_minutes=sync_settings.default_timeout_minutes,
        probe=probe,
    )
    reconciler = MembershipReconciler(
        session=session,
        membership_repository=membership_repository,
        group_repository=group_repository,
        identity_resolver=identity_resolver,
        batch_size=sync_settings.membership_batch_size,
        probe=probe,
    )
    return AuthmanSyncService(
        session=session,
        group_repository=group_repository,
        membership_repository=membership_repository,
        managed_config_repository=ManagedGroupConfigRepository(session=session),
        directory=directory,
        guard=guard,
        reconciler=reconciler,
        tenant_admin_external_ids=get_authman_settings().admin_external_ids,
        probe=probe,
    )


def build_sync_effects_publisher(session: AsyncSession) -> SyncEffectsPublisher:
    """Build the publisher appending sync effects to the outbox."""
    outbox = OutboxRepository(session=session, serializer=GroupsEventSerializer())
    return SyncEffectsPublisher(session=session, outbox=outbox)


def get_authman_sync_service(
    session: Annotated[AsyncSession, Depends(get_write_session)],
    directory: Annotated[DirectoryGateway, Depends(get_directory_gateway)],
    identity_resolver: Annotated[IdentityResolver, Depends(get_identity_resolver)],
    probe: Annotated[AuthmanSyncProbe, Depends(get_authman_sync_probe)],
) -> AuthmanSyncService:
    """Get AuthmanSyncService instance.

    Args:
        session: Database session for transaction management
        directory: Directory gateway
        identity_resolver: Core identity resolver
        probe: Sync probe for observability

    Returns:
        AuthmanSyncService bound to the request's session
    """
    return build_authman_sync_service(session, directory, identity_resolver, probe)


def get_sync_effects_publisher(
    session: Annotated[AsyncSession, Depends(get_write_session)],
) -> SyncEffectsPublisher:
    """Get SyncEffectsPublisher sharing the request's session."""
    return build_sync_effects_publisher(session)
