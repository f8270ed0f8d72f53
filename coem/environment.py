"""Lexical scopes keyed by name patterns.

A Coem name may spell several names at once: ``her|him`` binds both ``her``
and ``him``. Scopes store each binding under a :class:`NamePattern` and look
names up by testing the stored patterns in insertion order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Callable, Iterable


class _Automaton:
    """Nondeterministic automaton over the names one spelling stands for.

    Edges labelled ``None`` are epsilon moves. Pattern syntax has no
    repetition, so the graph is acyclic and every name it accepts is finite.
    """

    def __init__(self) -> None:
        self.edges: list[list[tuple[str | None, int]]] = []
        self.start = self.add_state()
        self.accept = self.start

    def add_state(self) -> int:
        self.edges.append([])
        return len(self.edges) - 1

    def link(self, source: int, target: int, symbol: str | None = None) -> None:
        self.edges[source].append((symbol, target))

    def initial(self) -> frozenset[int]:
        return self.closure([self.start])

    def closure(self, states: Iterable[int]) -> frozenset[int]:
        stack = list(states)
        seen = set(stack)
        while stack:
            state = stack.pop()
            for symbol, target in self.edges[state]:
                if symbol is None and target not in seen:
                    seen.add(target)
                    stack.append(target)
        return frozenset(seen)

    def symbols(self, states: frozenset[int]) -> set[str]:
        return {symbol for state in states for symbol, _ in self.edges[state] if symbol is not None}

    def step(self, states: frozenset[int], symbol: str) -> frozenset[int]:
        return self.closure(target for state in states for label, target in self.edges[state] if label == symbol)


@dataclass(frozen=True)
class NamePattern:
    """Finite set of literal names spelled by one identifier."""

    spelling: str
    automaton: _Automaton = field(repr=False, compare=False)

    @classmethod
    def parse(cls, spelling: str) -> NamePattern:
        return compile_pattern(spelling)

    def accepts(self, name: str) -> bool:
        """Return whether ``name`` is one of the spelled names."""
        automaton = self.automaton
        states = automaton.initial()
        for ch in name:
            states = automaton.step(states, ch)
            if not states:
                return False
        return automaton.accept in states

    def matches(self, other: NamePattern) -> bool:
        """Return whether the two patterns spell at least one common name.

        Walks both automata in lockstep; the set of names is never built.
        """
        if self.spelling == other.spelling:
            return True
        left, right = self.automaton, other.automaton
        first = (left.initial(), right.initial())
        seen = {first}
        pending = [first]
        while pending:
            mine, theirs = pending.pop()
            if left.accept in mine and right.accept in theirs:
                return True
            for symbol in left.symbols(mine) & right.symbols(theirs):
                pair = (left.step(mine, symbol), right.step(theirs, symbol))
                if pair not in seen:
                    seen.add(pair)
                    pending.append(pair)
        return False

    def __str__(self) -> str:
        return self.spelling


class _PatternSyntaxError(ValueError):
    pass


class _PatternReader:
    """Compiles ``a|b``, ``(..)`` groups, ``x?`` and ``[..]`` classes into an automaton.

    ``*`` and ``+`` would make the set unbounded, so they read as ordinary
    characters.
    """

    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0
        self.automaton = _Automaton()

    def read(self) -> _Automaton:
        start, end = self._alternation()
        if self.pos != len(self.text):
            raise _PatternSyntaxError(self.text)
        self.automaton.start = start
        self.automaton.accept = end
        return self.automaton

    def _alternation(self) -> tuple[int, int]:
        start, end = self._sequence()
        if self._peek() != "|":
            return start, end
        entry = self.automaton.add_state()
        exit_ = self.automaton.add_state()
        self.automaton.link(entry, start)
        self.automaton.link(end, exit_)
        while self._peek() == "|":
            self.pos += 1
            start, end = self._sequence()
            self.automaton.link(entry, start)
            self.automaton.link(end, exit_)
        return entry, exit_

    def _sequence(self) -> tuple[int, int]:
        start = end = self.automaton.add_state()
        while self._peek() not in ("", "|", ")"):
            atom_start, atom_end = self._atom()
            if self._peek() == "?":
                self.pos += 1
                self.automaton.link(atom_start, atom_end)
            self.automaton.link(end, atom_start)
            end = atom_end
        return start, end

    def _atom(self) -> tuple[int, int]:
        ch = self.text[self.pos]
        self.pos += 1
        if ch == "(":
            inner = self._alternation()
            if self._peek() != ")":
                raise _PatternSyntaxError(self.text)
            self.pos += 1
            return inner
        if ch == "]":
            raise _PatternSyntaxError(self.text)

        start = self.automaton.add_state()
        end = self.automaton.add_state()
        if ch == "[":
            close = self.text.find("]", self.pos)
            if close <= self.pos:
                raise _PatternSyntaxError(self.text)
            for symbol in self.text[self.pos : close]:
                self.automaton.link(start, end, symbol)
            self.pos = close + 1
        else:
            self.automaton.link(start, end, ch)
        return start, end

    def _peek(self) -> str:
        if self.pos >= len(self.text):
            return ""
        return self.text[self.pos]


def _literal(spelling: str) -> _Automaton:
    automaton = _Automaton()
    state = automaton.start
    for ch in spelling:
        following = automaton.add_state()
        automaton.link(state, following, ch)
        state = following
    automaton.accept = state
    return automaton


@lru_cache(maxsize=1024)
def compile_pattern(spelling: str) -> NamePattern:
    """Parse an identifier spelling; malformed patterns are literal names."""
    try:
        automaton = _PatternReader(spelling).read()
    except _PatternSyntaxError:
        automaton = _literal(spelling)
    return NamePattern(spelling=spelling, automaton=automaton)




@dataclass
class RunSettings:
    """Per-run configuration toggled by directives."""

    palimpsest: bool = False
    prompt: Callable[[str], str] | None = None


@dataclass(eq=False)
class Binding:
    pattern: NamePattern
    value: Any
    layered: bool = False

    def overwrite(self, value: Any, palimpsest: bool) -> None:
        if not palimpsest:
            self.value = value
            self.layered = False
            return
        if not self.layered:
            self.value = [self.value]
            self.layered = True
        self.value.append(value)


@dataclass(eq=False)
class Scope:
    """Lexical scope with parent chaining."""

    parent: Scope | None = None
    bindings: list[Binding] = field(default_factory=list)
    _settings: RunSettings | None = field(default=None, repr=False)

    @property
    def settings(self) -> RunSettings:
        root = self.root
        if root._settings is None:
            root._settings = RunSettings()
        return root._settings

    @settings.setter
    def settings(self, value: RunSettings) -> None:
        self.root._settings = value

    @property
    def root(self) -> Scope:
        scope = self
        while scope.parent is not None:
            scope = scope.parent
        return scope

    def child(self) -> Scope:
        return Scope(parent=self)

    def find(self, name: str) -> Binding | None:
        """Return the first binding in this scope whose pattern matches ``name``."""
        wanted = compile_pattern(name)
        for binding in self.bindings:
            if binding.pattern.matches(wanted):
                return binding
        return None

    def resolve(self, name: str) -> Binding | None:
        """Resolve a binding in current or parent scopes."""
        scope: Scope | None = self
        while scope is not None:
            found = scope.find(name)
            if found is not None:
                return found
            scope = scope.parent
        return None

    def lookup(self, name: str) -> Any:
        """Return the bound value, or ``name`` itself when nothing matches."""
        binding = self.resolve(name)
        if binding is None:
            return name
        return binding.value

    def define(self, name: str, value: Any) -> None:
        """Bind ``name`` in this scope only, replacing a matching local binding."""
        palimpsest = self.settings.palimpsest
        binding = self.find(name)
        if binding is not None:
            binding.overwrite(value, palimpsest)
            return
        self._bind_new(name, value, palimpsest)

    def assign_or_define(self, name: str, value: Any) -> None:
        """Update the nearest matching binding, or create one in this scope."""
        palimpsest = self.settings.palimpsest
        binding = self.resolve(name)
        if binding is not None:
            binding.overwrite(value, palimpsest)
            return
        self._bind_new(name, value, palimpsest)

    def register_builtin(self, name: str, value: Any) -> None:
        self.assign_or_define(name, value)

    def apply_directive(self, name: str, value: str) -> None:
        """Interpret ``#name value``; unknown directives are plain bindings."""
        if name == "as" and value == "palimpsest":
            self.settings.palimpsest = True
            return
        if name == "in" and value == "dialogue":
            self._install_dialogue()
            return
        self.assign_or_define(name, value)

    def _install_dialogue(self) -> None:
        prompt = self.settings.prompt
        if prompt is None:
            return
        # Imported here; the interpreter module depends on this one.
        from coem.interpreter import NativeFunction, render_arguments

        def listen(interpreter: Any, arguments: list[Any], callee: Any) -> str:
            return prompt(render_arguments(arguments).strip())

        builtin = NativeFunction(name="input", fn=listen)
        for alias in ("input", "learn", "listen"):
            self.register_builtin(alias, builtin)

    def _bind_new(self, name: str, value: Any, palimpsest: bool) -> None:
        pattern = compile_pattern(name)
        if palimpsest:
            self.bindings.append(Binding(pattern=pattern, value=[value], layered=True))
        else:
            self.bindings.append(Binding(pattern=pattern, value=value))
