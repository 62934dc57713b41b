from __future__ import annotations

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateNotFound, select_autoescape

from pong.api.models import GameState
from pong.broadcast import PushEvent
from pong.core.changes import Region, ordered
from pong.settings import project_root


class RendererError(RuntimeError):
    pass


def _pct(value: float) -> str:
    """Format a 0..1 fraction as a CSS percentage number."""

    return f"{value * 100:.2f}"


_REGION_TEMPLATES: dict[Region, str] = {
    Region.scoreboard: "scoreboard.html.jinja2",
    Region.bat_left: "bat.html.jinja2",
    Region.bat_right: "bat.html.jinja2",
    Region.ball: "ball.html.jinja2",
}

_PAGE_TEMPLATE = "game.html.jinja2"


class FragmentRenderer:
    """Turns a GameState into the markup fragments pushed to viewers.

    Output is deterministic for a given (state, viewers) pair.
    """

    def __init__(self, template_dir: Path | None = None, *, pause_key: str = "p"):
        self.pause_key = pause_key
        directory = template_dir or (project_root() / "templates")
        if not directory.is_dir():
            raise RendererError(f"Template directory not found: {directory}")
        self.env = Environment(
            loader=FileSystemLoader(str(directory)),
            autoescape=select_autoescape(["html", "jinja2"]),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["pct"] = _pct
        # Fail at startup rather than on the first push.
        for name in {*_REGION_TEMPLATES.values(), _PAGE_TEMPLATE}:
            try:
                self.env.get_template(name)
            except TemplateNotFound as e:
                raise RendererError(f"Template not found: {directory / name}") from e

    def render(self, region: Region, state: GameState, *, viewers: int) -> str:
        template = self.env.get_template(_REGION_TEMPLATES[region])
        context: dict[str, object] = {"game": state, "players": viewers, "pause_key": self.pause_key}
        if region == Region.bat_left:
            context.update(bat_id="bat_left", bat=state.left)
        elif region == Region.bat_right:
            context.update(bat_id="bat_right", bat=state.right)
        return template.render(**context).strip()

    def render_events(self, regions: frozenset[Region] | set[Region], state: GameState, *, viewers: int) -> list[PushEvent]:
        return [
            PushEvent(event=region.value, data=self.render(region, state, viewers=viewers))
            for region in ordered(regions)
        ]

    def render_page(self, state: GameState, *, viewers: int) -> str:
        fragments = {region.value: self.render(region, state, viewers=viewers) for region in Region}
        template = self.env.get_template(_PAGE_TEMPLATE)
        return template.render(game=state, players=viewers, fragments=fragments, pause_key=self.pause_key)
