from __future__ import annotations

from statemachine import State, StateMachine

from pong.api.models import GameState


class PauseFSM(StateMachine):
    """Pause/resume state machine around GameState.

    Only the pause override lives here; scoring does not pause the match.
    The engine calls `sync_to_model` after every transition.
    """

    running = State("running", value="running")
    paused = State("paused", value="paused", initial=True)

    resume = paused.to(running)
    toggle = running.to(paused) | paused.to(running)

    def __init__(self, game: GameState):
        self.game = game
        super().__init__(start_value="paused" if game.paused else "running")

    def sync_to_model(self) -> None:
        self.game.paused = self.current_state.value == "paused"
