"""
User interaction used by the pipeline.

Prompt I/O sits behind the Prompter interface: ConsolePrompter talks to a
terminal, NonInteractivePrompter always takes the default answer (server mode,
``--non-interactive``), and tests supply their own fakes.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Generic, List, Optional, Sequence, TypeVar

T = TypeVar("T")


@dataclass
class UserInputConfiguration(Generic[T]):
    """How a choose-or-create prompt presents its options."""
    display_selector: Callable[[T], str]
    default_selector: Callable[[T], bool]
    default_new_name: str = ""
    ask_new_name: bool = True
    can_be_empty: bool = False


@dataclass
class UserResponse(Generic[T]):
    """Answer to a choose-or-create prompt."""
    create_new: bool = False
    selected_option: Optional[T] = None
    new_name: Optional[str] = None


class Prompter(ABC):
    """Interface for the questions the pipeline asks the user."""

    @abstractmethod
    def ask_to_choose_recommendation(self, recommendations: Sequence[T]) -> T:
        """Pick one recommendation; the first one is the default."""

    @abstractmethod
    def ask_user_to_choose_or_create_new(self, options: Sequence[T], title: str,
                                         config: UserInputConfiguration[T]) -> UserResponse[T]:
        """Choose an existing option or name a new one."""

    @abstractmethod
    def ask_yes_no(self, question: str, default: bool = True) -> bool:
        """Ask a yes/no question."""


class NonInteractivePrompter(Prompter):
    """Answers every question with its default."""

    def ask_to_choose_recommendation(self, recommendations):
        return recommendations[0]

    def ask_user_to_choose_or_create_new(self, options, title, config):
        for option in options:
            if config.default_selector(option):
                return UserResponse(selected_option=option)
        if config.ask_new_name and config.default_new_name:
            return UserResponse(create_new=True, new_name=config.default_new_name)
        if options and not config.can_be_empty:
            return UserResponse(selected_option=options[0])
        return UserResponse()

    def ask_yes_no(self, question, default=True):
        return default


class ConsolePrompter(Prompter):
    """Prompts on the terminal."""

    def __init__(self, input_func: Callable[[str], str] = input,
                 output_func: Callable[[str], None] = print):
        self._input = input_func
        self._print = output_func

    def _choose_index(self, labels: List[str], default_index: int) -> int:
        for i, label in enumerate(labels, start=1):
            marker = " (default)" if i - 1 == default_index else ""
            self._print(f"{i}: {label}{marker}")
        while True:
            answer = self._input(f"Choose option (default {default_index + 1}): ").strip()
            if not answer:
                return default_index
            if answer.isdigit() and 1 <= int(answer) <= len(labels):
                return int(answer) - 1
            self._print(f"Invalid option. Enter a number between 1 and {len(labels)}.")

    def ask_to_choose_recommendation(self, recommendations):
        self._print("Recommended deployment option(s):")
        labels = [r.name for r in recommendations]
        return recommendations[self._choose_index(labels, 0)]

    def ask_user_to_choose_or_create_new(self, options, title, config):
        self._print(title)
        labels = [config.display_selector(o) for o in options]
        new_index = None
        if config.ask_new_name:
            new_index = len(labels)
            labels.append("*** Create new ***")
        empty_index = None
        if config.can_be_empty:
            empty_index = len(labels)
            labels.append("*** Do not select ***")

        default_index = next((i for i, o in enumerate(options) if config.default_selector(o)), None)
        if default_index is None:
            default_index = new_index if new_index is not None else 0

        choice = self._choose_index(labels, default_index)
        if choice == empty_index:
            return UserResponse()
        if choice == new_index:
            name = self._input(f"Enter name (default {config.default_new_name}): ").strip()
            return UserResponse(create_new=True, new_name=name or config.default_new_name)
        return UserResponse(selected_option=options[choice])

    def ask_yes_no(self, question, default=True):
        suffix = "(Y/n)" if default else "(y/N)"
        while True:
            answer = self._input(f"{question} {suffix}: ").strip().lower()
            if not answer:
                return default
            if answer in ("y", "yes"):
                return True
            if answer in ("n", "no"):
                return False
            self._print("Please answer 'y' or 'n'.")
