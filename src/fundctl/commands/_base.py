"""Click base classes and parameter types shared by every fundctl command.

``--help`` stays short; ``--examples`` prints copy-pasteable invocations
and exits. Any command or group built with ``cls=FundCommand`` /
``cls=FundGroup`` and an ``examples=`` string gets the flag.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

import click


class _ExamplesMixin:
    """Adds an eager ``--examples`` flag when an ``examples`` text is given."""

    params: list[click.Parameter]

    def _install_examples(self, examples: str | None) -> None:
        self.examples = examples
        if not examples:
            return

        def show(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
            if value and not ctx.resilient_parsing:
                click.echo(f"Examples for '{ctx.command_path}':\n\n{examples}")
                ctx.exit(0)

        self.params.append(
            click.Option(
                ["--examples"],
                is_flag=True,
                expose_value=False,
                is_eager=True,
                callback=show,
                help="Show usage examples and exit.",
            )
        )


class FundCommand(_ExamplesMixin, click.Command):
    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._install_examples(examples)


class FundGroup(_ExamplesMixin, click.Group):
    """Root group; subcommands default to :class:`FundCommand`."""

    command_class = FundCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._install_examples(examples)


class DecimalParamType(click.ParamType):
    """SOL amounts parsed as exact decimals, never floats.

    Range checks are left to the run policy so that bad values from the
    command line and from config files fail the same way.
    """

    name = "decimal"

    def convert(self, value: Any, param: click.Parameter | None, ctx: click.Context | None) -> Any:
        if isinstance(value, Decimal):
            return value
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            self.fail(f"{value!r} is not a valid amount", param, ctx)
        if not result.is_finite():
            self.fail(f"{value!r} is not a finite amount", param, ctx)
        return result


DECIMAL = DecimalParamType()


def overrides(**values: Any) -> dict[str, Any]:
    """Keep only the options the user actually passed, for ``model_copy(update=...)``."""
    return {key: value for key, value in values.items() if value is not None}
