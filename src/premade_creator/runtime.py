"""
Ownership of the premade creator's long-lived components.

Everything the commands, the console and the scheduler share (stores, reload
signal, notifier, scheduler) is built here once and handed around explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass

from premade_creator.bot.premade_commands import PremadeCommands
from premade_creator.configuration.app_configuration import AppConfig
from premade_creator.configuration.drafts import DraftStore
from premade_creator.configuration.event_config import EventConfigStore
from premade_creator.notifications.notifier import EventNotifier
from premade_creator.notifications.reaction_tracker import ReactionTracker
from premade_creator.scheduler.event_scheduler import EventScheduler, ReloadSignal
from premade_creator.transport.base import EventTransport


@dataclass
class PremadeRuntime:
    app_config: AppConfig
    config_store: EventConfigStore
    drafts: DraftStore
    tracker: ReactionTracker
    reload_signal: ReloadSignal
    notifier: EventNotifier
    scheduler: EventScheduler
    commands: PremadeCommands


def build_runtime(app_config: AppConfig, transport: EventTransport) -> PremadeRuntime:
    """Wire every component together and load the committed configurations."""
    config_store = EventConfigStore(app_config.data_path)
    config_store.load()

    drafts = DraftStore(config_store)
    tracker = ReactionTracker()
    reload_signal = ReloadSignal()
    notifier = EventNotifier(
        config_store,
        tracker,
        transport,
        field_budget=app_config.field_budget,
        embed_color=app_config.embed_color,
    )
    scheduler = EventScheduler(
        config_store,
        notifier,
        reload_signal,
        get_tick_seconds=lambda: app_config.tick_seconds,
    )

    return PremadeRuntime(
        app_config=app_config,
        config_store=config_store,
        drafts=drafts,
        tracker=tracker,
        reload_signal=reload_signal,
        notifier=notifier,
        scheduler=scheduler,
        commands=PremadeCommands(drafts, reload_signal),
    )
