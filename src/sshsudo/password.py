"""Password sources for sudo.

A password callback takes no arguments and returns the password, or raises
if it cannot produce one. sudo_run calls it at most once per handshake and
not at all when the remote sudo policy does not ask for a password.
"""
from __future__ import annotations

import os
from collections.abc import Callable

import click

PasswordCallback = Callable[[], str]


def static_password_callback(password: str) -> PasswordCallback:
    """Return a callback that always yields ``password``."""
    def callback() -> str:
        return password

    return callback


def env_password_callback(var: str) -> PasswordCallback:
    """Return a callback reading the password from environment variable ``var``.

    The variable is read when the callback runs, not when it is created.
    """
    def callback() -> str:
        value = os.environ.get(var)
        if value is None:
            raise LookupError(f"environment variable {var} is not set")
        return value

    return callback


def prompt_password_callback(prompt: str = '[sudo] password') -> PasswordCallback:
    """Return a callback that asks for the password on the terminal."""
    def callback() -> str:
        return click.prompt(prompt, hide_input=True, err=True)

    return callback
