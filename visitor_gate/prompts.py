"""Operator interaction surface used by the verification protocol."""

from typing import Optional


class Operator:
    """
    Interface for talking to the person at the gate.

    ask_yes_no and ask_text block until answered. Either may return None
    when no answer was given (window closed, timeout).
    """

    def ask_yes_no(self, question: str, title: str = "") -> Optional[bool]:
        raise NotImplementedError

    def ask_text(self, prompt: str, title: str = "") -> Optional[str]:
        raise NotImplementedError

    def notify(self, message: str):
        raise NotImplementedError


class ConsoleOperator(Operator):
    """Operator prompts on the terminal."""

    def __init__(self, input_fn=input, print_fn=print):
        self._input = input_fn
        self._print = print_fn

    def ask_yes_no(self, question, title=""):
        while True:
            try:
                answer = self._input(f"{question} [y/n]: ").strip().lower()
            except EOFError:
                return None
            if answer in ("y", "yes"):
                return True
            if answer in ("n", "no"):
                return False
            self._print("Please answer 'y' or 'n'.")

    def ask_text(self, prompt, title=""):
        try:
            return self._input(f"{prompt}: ")
        except EOFError:
            return None

    def notify(self, message):
        self._print(f"[{message}]")
