"""A tiny Lisp interpreter that knows only car, cdr, cons, set, equal, quote,
lambda and if, yet is Turing-complete."""

from __future__ import annotations

import argparse
import re
import sys
from collections import deque
from dataclasses import dataclass
from typing import Callable, Iterable

HELP = (
    "This is a simple lisp interpreter that only understands car, cdr, "
    "cons, if, set, equal, quote, and lambda, but is still Turing-complete. "
    "Besides these primitive functions it only knows about two atoms, t and "
    "nil.  Integer arithmetic and more complicated programming constructs "
    "can be formed with the primitives."
)

_LEXEME = re.compile(r"[()']|[^()'\s;]+")


class LispError(Exception):
    """An error raised while parsing or evaluating an expression."""


class Atom:
    """A named symbol; atoms with the same name are the same object."""

    __slots__ = ("name",)

    def __init__(self, name: str):
        self.name = name

    def __repr__(self) -> str:
        return f"Atom({self.name!r})"


@dataclass(frozen=True)
class Lambda:
    """A user function: a parameter list (tuple of atoms, or nil) and a body."""

    params: object
    body: object


@dataclass(frozen=True)
class _Builtin:
    name: str
    func: Callable
    special: bool


def _line_tokens(line: str) -> list[str]:
    return _LEXEME.findall(line.split(";", 1)[0])


def tokenize(text: str) -> list[str]:
    """Split source text into tokens; '(' ')' and quote stand alone, ';' starts a comment."""
    return [item for line in text.splitlines() for item in _line_tokens(line)]


class _Reader:
    """Reads expressions one at a time from an iterable of lines."""

    def __init__(self, interp: "Interpreter", lines: Iterable[str]):
        self._interp = interp
        self._lines = iter(lines)
        self._pending: deque[str] = deque()

    def _peek(self) -> str | None:
        while not self._pending:
            line = next(self._lines, None)
            if line is None:
                return None
            self._pending.extend(_line_tokens(line))
        return self._pending[0]

    def _take(self) -> str | None:
        item = self._peek()
        if item is not None:
            self._pending.popleft()
        return item

    def read(self):
        """Return the next expression, or None at end of input."""
        item = self._take()
        if item is None:
            return None
        if item == "(":
            return self._read_list()
        if item == "'":
            expr = self.read()
            if expr is None:
                raise LispError("parse error: unexpected EOF.")
            return (self._interp.quote_atom, expr)
        if item == ")":
            self._pending.clear()
            raise LispError("parse error: unexpected ')'")
        return self._interp._intern(item)

    def _read_list(self):
        items = []
        while True:
            item = self._peek()
            if item is None:
                raise LispError("parse error: unexpected EOF.")
            if item == ")":
                self._take()
                return tuple(items) if items else self._interp.nil
            items.append(self.read())


class Interpreter:
    """Holds the atom table and bindings, and evaluates expressions."""

    def __init__(self):
        self._atoms: dict[str, Atom] = {}
        self._bindings: dict[Atom, list] = {}
        self.nil = self._intern("nil")
        self._bind(self.nil, self.nil)
        self.t = self._intern("t")
        self._bind(self.t, self.t)
        self.quote_atom = self._intern("quote")

        for name, func in (("car", self._car), ("cdr", self._cdr), ("cons", self._cons),
                           ("set", self._set), ("equal", self._equal)):
            self._bind(self._intern(name), _Builtin(name, func, special=False))
        for name, func in (("quote", self._quote), ("lambda", self._lambda),
                           ("if", self._if)):
            self._bind(self._intern(name), _Builtin(name, func, special=True))

    # -- atoms and bindings -------------------------------------------------

    def _intern(self, name: str) -> Atom:
        atom = self._atoms.get(name)
        if atom is None:
            atom = self._atoms[name] = Atom(name)
        return atom

    def _bind(self, atom: Atom, value) -> None:
        stack = self._bindings.get(atom)
        if stack:
            stack[-1] = value
        else:
            self._bindings[atom] = [value]

    def _lookup(self, atom: Atom):
        stack = self._bindings.get(atom)
        if not stack:
            raise LispError(f'Error: unbound atom "{atom.name}".')
        return stack[-1]

    def _push(self, atom: Atom, value) -> None:
        self._bindings.setdefault(atom, []).append(value)

    def _pop(self, atom: Atom) -> None:
        stack = self._bindings[atom]
        stack.pop()
        if not stack:
            del self._bindings[atom]

    # -- value functions ----------------------------------------------------

    def _car(self, a, _b):
        if a is self.nil:
            return self.nil
        if not isinstance(a, tuple):
            raise LispError("Error: car: argument is not a list.")
        return a[0]

    def _cdr(self, a, _b):
        if a is self.nil:
            return self.nil
        if not isinstance(a, tuple):
            raise LispError("Error: cdr: argument is not a list.")
        return a[1:] or self.nil

    def _cons(self, a, b):
        if b is self.nil:
            return (a,)
        if not isinstance(b, tuple):
            raise LispError("Error: cons: second argument is not a list.")
        return (a,) + b

    def _set(self, a, b):
        if not isinstance(a, Atom):
            raise LispError("Error: set: first argument is not an atom.")
        self._bind(a, b)
        return b

    def _equal(self, a, b):
        return self.t if isinstance(a, Atom) and a is b else self.nil

    # -- special functions --------------------------------------------------

    def _quote(self, args):
        return args[0] if args else self.nil

    def _lambda(self, args):
        params = args[0] if args else self.nil
        body = args[1] if len(args) > 1 else self.nil
        if params is not self.nil and not (
            isinstance(params, tuple) and all(isinstance(p, Atom) for p in params)
        ):
            raise LispError("Error: bad argument list supplied.")
        return Lambda(params, body)

    def _if(self, args):
        cond, then, other = (tuple(args) + (self.nil,) * 3)[:3]
        if self.evaluate(cond) is not self.nil:
            return self.evaluate(then)
        return self.evaluate(other)

    # -- evaluation ---------------------------------------------------------

    def _apply(self, func: Lambda, args):
        params = () if func.params is self.nil else func.params
        values = [
            self.evaluate(args[index]) if index < len(args) else self.nil
            for index in range(len(params))
        ]
        # Push in reverse so the first of any repeated parameter names wins.
        pushed = []
        try:
            for atom, value in reversed(list(zip(params, values))):
                self._push(atom, value)
                pushed.append(atom)
            return self.evaluate(func.body)
        finally:
            for atom in pushed:
                self._pop(atom)

    def evaluate(self, expr):
        """Evaluate an expression; raises LispError on failure."""
        if isinstance(expr, Atom):
            return self._lookup(expr)
        if isinstance(expr, tuple):
            func = self.evaluate(expr[0])
            args = expr[1:]
            if isinstance(func, _Builtin):
                if func.special:
                    return func.func(args)
                a = self.evaluate(args[0] if args else self.nil)
                b = self.evaluate(args[1] if len(args) > 1 else self.nil)
                return func.func(a, b)
            if isinstance(func, Lambda):
                return self._apply(func, args)
        return expr

    def format(self, value) -> str:
        """Render a value the way the interpreter prints it."""
        if isinstance(value, Atom):
            return value.name
        if isinstance(value, tuple):
            return "(" + " ".join(self.format(item) for item in value) + ")"
        if isinstance(value, Lambda):
            return f"(lambda {self.format(value.params)} {self.format(value.body)})"
        if isinstance(value, _Builtin):
            return ("<internal-special-function>" if value.special
                    else "<internal-value-function>")
        return "<NULL>"

    # -- reading ------------------------------------------------------------

    def parse(self, text: str) -> list:
        """Parse every expression in the text; raises LispError on a syntax error."""
        reader = _Reader(self, text.splitlines())
        exprs = []
        while (expr := reader.read()) is not None:
            exprs.append(expr)
        return exprs

    def _evaluate_safely(self, expr) -> str:
        try:
            return self.format(self.evaluate(expr))
        except LispError as exc:
            return str(exc)
        except RecursionError:
            return "Error: recursion too deep."

    def run(self, text: str) -> list[str]:
        """Read and evaluate every expression, returning one output line each.

        Errors become their message; after an unexpected ')' the rest of that
        line is skipped.
        """
        reader = _Reader(self, text.splitlines())
        outputs = []
        while True:
            try:
                expr = reader.read()
            except LispError as exc:
                outputs.append(str(exc))
                continue
            if expr is None:
                return outputs
            outputs.append(self._evaluate_safely(expr))


def main(argv=None):
    parser = argparse.ArgumentParser(prog="stutter", description=HELP)
    parser.parse_args(argv)

    interp = Interpreter()
    echo = not sys.stdin.isatty()
    reader = _Reader(interp, sys.stdin)
    out = sys.stdout
    while True:
        out.write("> ")
        out.flush()
        try:
            expr = reader.read()
        except LispError as exc:
            out.write(f"{exc}\n")
            continue
        if expr is None:
            break
        if echo:
            out.write(interp.format(expr) + "\n")
        out.write(interp._evaluate_safely(expr) + "\n")
    out.write("\n")
    return 0