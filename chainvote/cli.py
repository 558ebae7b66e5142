import json

import click

from chainvote.blocks import DEFAULT_DIFFICULTY, Block
from chainvote.chain import validate_chain
from chainvote.exceptions import ChainVoteError
from chainvote.voting import tally_chain


def load_chain(path):
    """
    Read an exported chain. Accepts a bare list of blocks or ``{"chain": [...]}``
    as returned by ``GET /api/chain`` and ``GET /api/state``.
    """
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    if isinstance(raw, dict):
        raw = raw.get("chain")
    if not isinstance(raw, list):
        raise ChainVoteError("Expected a list of blocks or an object with a 'chain' list")
    return [Block.from_dict(item) for item in raw]


# Helper function for consistent error handling and output
def handle_chain_call(ctx, func, *args, **kwargs):
    """
    Calls a chain helper, handles errors, and prints output based on --json-output flag.
    """
    try:
        return func(*args, **kwargs)
    except (ChainVoteError, OSError, json.JSONDecodeError) as e:
        error_info = {
            "status": "error",
            "message": str(e),
            "details": getattr(e, "details", None),
        }
        if ctx.obj.get("JSON_OUTPUT"):
            click.echo(json.dumps(error_info, indent=2))
        else:
            click.echo(f"ERROR: {str(e)}", err=True)
            if getattr(e, "details", None):
                click.echo(f"Details: {e.details}", err=True)
        ctx.exit(2)


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--json-output", "-j", is_flag=True, help="Output results in JSON format.")
@click.pass_context
def cli(ctx, verbose, json_output):
    """ChainVote command line tools for auditing exported ledgers."""
    ctx.ensure_object(dict)
    ctx.obj["VERBOSE"] = verbose
    ctx.obj["JSON_OUTPUT"] = json_output


@cli.command("verify")
@click.argument("chain_file", type=click.Path(dir_okay=False))
@click.option("--strict", is_flag=True, help="Also check proof-of-work, indices and the genesis block.")
@click.option(
    "--difficulty",
    default=DEFAULT_DIFFICULTY,
    type=int,
    show_default=True,
    help="Leading zero hex characters required in --strict mode.",
)
@click.pass_context
def verify(ctx, chain_file, strict, difficulty):
    """
    Validate hash linkage of an exported chain.

    Exits with status 1 when the chain is invalid.

    Example:

        chainvote verify chain.json --strict
    """
    blocks = handle_chain_call(ctx, load_chain, chain_file)
    valid = validate_chain(blocks, difficulty=difficulty, strict=strict)
    if ctx.obj.get("JSON_OUTPUT"):
        click.echo(json.dumps({"status": "success", "valid": valid, "length": len(blocks)}, indent=2))
    elif valid:
        click.echo(f"SUCCESS: chain of {len(blocks)} blocks is valid.")
    else:
        click.echo(f"INVALID: chain of {len(blocks)} blocks failed verification.", err=True)
    if not valid:
        ctx.exit(1)


@cli.command("tally")
@click.argument("chain_file", type=click.Path(dir_okay=False))
@click.pass_context
def tally(ctx, chain_file):
    """
    Count votes per candidate by replaying an exported chain.

    Example:

        chainvote -j tally chain.json
    """
    blocks = handle_chain_call(ctx, load_chain, chain_file)
    counts = tally_chain(blocks)
    if ctx.obj.get("JSON_OUTPUT"):
        click.echo(json.dumps({"status": "success", "totalVotes": max(len(blocks) - 1, 0), "tallies": counts}, indent=2))
        return
    if not counts:
        click.echo("No votes recorded.")
        return
    for candidate_id, count in sorted(counts.items(), key=lambda item: -item[1]):
        click.echo(f"{candidate_id}: {count}")


if __name__ == "__main__":
    cli(obj={})
