"""
Debug command line for inspecting and driving the default browser prompt engine.

State is kept in JSON files so the engine can be exercised on any platform:

    default-browser-prompt tick
    default-browser-prompt status --user-type existing --install-date 2025-01-01
    default-browser-prompt evaluate --config prompt.json
    default-browser-prompt reset-activity
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import click

from prompt_core.coordinator import CoordinatorState
from prompt_core.events import CompositeEventMapper, JsonlEventMapper, LoggingEventMapper
from prompt_core.file_store import JsonFilePromptStore
from prompt_core.interfaces import OutcomeCallback
from prompt_core.settings import JsonFeatureFlagProvider, StaticFeatureFlagProvider
from prompt_runtime import logger as app_logger
from prompt_runtime.composition import PromptEngine, build_engine
from prompt_shared.errors import PromptEngineError
from prompt_shared.models import PromptOutcome, UserType, Variant

DEFAULT_STATE_DIR = app_logger.DEFAULT_LOG_DIR / "state"
_ABANDON = "abandon"


@dataclass
class _FixedValues:
    """Stand-ins for the browser-side collaborators, fed from CLI options."""

    user_type: UserType
    installed_on: Optional[date]
    is_default_browser: bool
    onboarding_completed: bool

    def current_user_type(self) -> UserType:
        return self.user_type

    def install_date(self) -> Optional[date]:
        return self.installed_on

    def is_default(self) -> bool:
        return self.is_default_browser

    def is_onboarding_completed(self) -> bool:
        return self.onboarding_completed


class ConsolePresenter:
    """Asks on the terminal what the user did with the prompt."""

    def present(self, variant: Variant, on_outcome: OutcomeCallback) -> None:
        click.echo(f"Would you like to make this browser your default? [{variant.value}]")
        choices = [outcome.value for outcome in PromptOutcome] + [_ABANDON]
        answer = click.prompt("Outcome", type=click.Choice(choices), default=PromptOutcome.DISMISSED.value)
        if answer == _ABANDON:
            return
        on_outcome(PromptOutcome(answer))


@click.group(name="default-browser-prompt")
@click.option(
    "--state-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=DEFAULT_STATE_DIR,
    show_default=True,
    help="Directory holding activity.json, history.json and events.jsonl.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Feature settings JSON; built-in defaults when omitted.",
)
@click.option(
    "--user-type",
    type=click.Choice([t.value for t in UserType]),
    default=UserType.EXISTING.value,
    show_default=True,
)
@click.option(
    "--install-date",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Install date (YYYY-MM-DD); unknown when omitted.",
)
@click.option("--default-browser/--not-default-browser", default=False, show_default=True)
@click.option("--onboarding-completed/--onboarding-pending", default=True, show_default=True)
@click.option("--tz", "tz_name", type=str, default=None, help="IANA timezone for day bucketing.")
@click.pass_context
def cli(
    ctx: click.Context,
    state_dir: Path,
    config_path: Optional[Path],
    user_type: str,
    install_date,
    default_browser: bool,
    onboarding_completed: bool,
    tz_name: Optional[str],
) -> None:
    """Inspect and drive the default browser prompt engine."""
    tz = None
    if tz_name:
        try:
            tz = ZoneInfo(tz_name)
        except ZoneInfoNotFoundError as exc:
            raise click.BadParameter(f"Unknown timezone '{tz_name}'.", param_hint="--tz") from exc

    store = JsonFilePromptStore(state_dir)
    fixed = _FixedValues(
        user_type=UserType(user_type),
        installed_on=install_date.date() if install_date else None,
        is_default_browser=default_browser,
        onboarding_completed=onboarding_completed,
    )
    feature_flags = JsonFeatureFlagProvider(config_path) if config_path else StaticFeatureFlagProvider()

    engine = build_engine(
        activity_storage=store,
        history_storage=store,
        feature_flags=feature_flags,
        user_types=fixed,
        install_dates=fixed,
        onboarding=fixed,
        default_status=fixed,
        presenter=ConsolePresenter(),
        event_mapper=CompositeEventMapper(
            [LoggingEventMapper(), JsonlEventMapper(state_dir / "events.jsonl")]
        ),
        tz=tz,
        # The fixed status provider answers instantly; wait for it.
        sync_timeout=5.0,
    )
    ctx.obj = engine
    ctx.call_on_close(engine.close)


@cli.command("status")
@click.pass_obj
def status(engine: PromptEngine) -> None:
    """Show activity, prompt history and the current decision."""
    try:
        activity = engine.tracker.current_activity()
        history = engine.history_storage.load_history()
        decision = engine.coordinator.current_decision()
    except PromptEngineError as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(f"Active days:           {activity.number_of_active_days}")
    click.echo(f"Last active:           {_format_optional(activity.last_active_date)}")
    click.echo(f"Times shown:           {history.times_shown}")
    click.echo(f"Last shown:            {_format_optional(history.last_shown_date)}")
    click.echo(f"Last variant:          {history.last_variant.value if history.last_variant else '-'}")
    click.echo(f"Permanently dismissed: {'yes' if history.permanently_dismissed else 'no'}")
    click.echo(f"Default browser:       {'yes' if engine.status_cache.is_default_browser() else 'no'}")
    click.echo(f"Decision:              {decision.describe()}")


@cli.command("tick")
@click.pass_obj
def tick(engine: PromptEngine) -> None:
    """Record that the application became active now."""
    try:
        activity = engine.coordinator.record_activity()
    except PromptEngineError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Active days: {activity.number_of_active_days}")


@cli.command("evaluate")
@click.pass_obj
def evaluate(engine: PromptEngine) -> None:
    """Run one evaluation cycle, presenting the prompt on the console if eligible."""
    try:
        decision = engine.coordinator.evaluate()
    except PromptEngineError as exc:
        raise click.ClickException(str(exc)) from exc

    if not decision.should_show:
        click.echo(f"No prompt: {decision.describe()}")
        return

    if engine.coordinator.state is CoordinatorState.PRESENTING:
        engine.coordinator.abandon_presentation()
        click.echo("Presentation abandoned; history unchanged.")
        return

    history = engine.history_storage.load_history()
    click.echo(f"Recorded. Times shown: {history.times_shown}")


@cli.command("reset-activity")
@click.pass_obj
def reset_activity(engine: PromptEngine) -> None:
    """Delete the stored active-day count."""
    try:
        engine.tracker.reset()
    except PromptEngineError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo("Activity reset.")


@cli.command("reset-history")
@click.pass_obj
def reset_history(engine: PromptEngine) -> None:
    """Delete the stored prompt history, including a permanent dismissal."""
    try:
        engine.reset_history()
    except PromptEngineError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo("Prompt history reset.")


def _format_optional(value: Optional[date]) -> str:
    return value.isoformat() if value else "-"


def main() -> None:
    """Console script entry point."""
    cli(prog_name="default-browser-prompt")


if __name__ == "__main__":
    main()
