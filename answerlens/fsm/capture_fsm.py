import yaml
from pathlib import Path
from transitions import Machine

from answerlens.fsm.session import CaptureSession


class CaptureFSM:
    """
    Finite State Machine for one capture session.
    Loads its structure from states.yaml; the session data travels with
    the machine as an immutable ``CaptureSession`` value.
    """

    def __init__(self, config_path=None, callbacks=None):
        """
        :param config_path: Optional path to the YAML FSM definition.
        :param callbacks: Optional dict of callbacks for state entry actions.
                          Example: {"on_enter_done": some_function}
        """
        self.config_path = config_path or Path(__file__).parent / "states.yaml"
        self.callbacks = callbacks or {}
        self.session = CaptureSession()

        with open(self.config_path, "r") as f:
            fsm_config = yaml.safe_load(f)

        states = fsm_config.get("states", [])
        transitions = fsm_config.get("transitions", [])
        initial = fsm_config.get("initial", "idle")

        machine = Machine(
            model=self,
            states=states,
            transitions=transitions,
            initial=initial,
            auto_transitions=False,
        )

        # Register and validate callbacks
        for name, func in self.callbacks.items():
            if not callable(func):
                raise ValueError(f"Callback '{name}' must be callable, got {type(func)}")
            if not name.startswith("on_"):
                raise ValueError(f"Callback name '{name}' should start with 'on_' (e.g., 'on_enter_done')")
            getattr(machine, name)(func)

        self.machine = machine

    # -------------------- Condition Methods --------------------
    # Referenced in states.yaml

    def has_cropped_image(self):
        return self.session.cropped is not None

    def has_raw_image(self):
        return self.session.raw is not None

    # -------------------- Helper Methods --------------------

    def is_current(self, capture_id: str) -> bool:
        """True while ``capture_id`` still names the live capture."""
        return self.session.capture_id == capture_id

