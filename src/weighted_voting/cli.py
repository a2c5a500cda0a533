"""Weighted voting CLI — command-line front end for the voting service.

Usage:
    python -m weighted_voting.cli init --admin 0xAdmin
    python -m weighted_voting.cli whitelist --caller 0xAdmin --voter 0xAlice --weight 5
    python -m weighted_voting.cli create-proposal --caller 0xAdmin --description "Q4 budget"
    python -m weighted_voting.cli start --caller 0xAdmin
    python -m weighted_voting.cli vote --caller 0xAlice --proposal 0 --for
    python -m weighted_voting.cli proposal --id 0
    python -m weighted_voting.cli status
    python -m weighted_voting.cli check-invariants
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from pathlib import Path

from filelock import Timeout

from weighted_voting.config import VotingConfig
from weighted_voting.errors import VotingError
from weighted_voting.invariants import check_state
from weighted_voting.service import ServiceResult, VotingService


def _load_config(args: argparse.Namespace) -> VotingConfig:
    config = VotingConfig.from_env(args.env_file)
    if args.data_dir is not None:
        config = dataclasses.replace(config, data_dir=args.data_dir)
    return config


def _make_service(args: argparse.Namespace, admin: str | None = None) -> VotingService:
    """Create a VotingService backed by the data directory."""
    config = _load_config(args)
    if admin is not None:
        config = dataclasses.replace(config, admin=admin)
    return VotingService.from_config(config)


def _report(result: ServiceResult, message: str) -> int:
    if result.success:
        print(message)
        if "warning" in result.data:
            print(f"Warning: {result.data['warning']}", file=sys.stderr)
        return 0
    print(f"Failed: {'; '.join(result.errors)}", file=sys.stderr)
    return 1


def cmd_init(args: argparse.Namespace) -> int:
    service = _make_service(args, admin=args.admin)
    result = service.checkpoint()
    return _report(result, f"Initialised voting with admin: {service.admin()}")


def cmd_status(args: argparse.Namespace) -> int:
    service = _make_service(args)
    print(json.dumps(service.status(), indent=2))
    return 0


def cmd_whitelist(args: argparse.Namespace) -> int:
    service = _make_service(args)
    result = service.whitelist_voter(args.caller, args.voter, args.weight)
    return _report(
        result,
        f"Whitelisted {result.data.get('voter_id')} with weight {result.data.get('weight')}",
    )


def cmd_create_proposal(args: argparse.Namespace) -> int:
    service = _make_service(args)
    result = service.create_proposal(args.caller, args.description)
    return _report(result, f"Created proposal: {result.data.get('proposal_id')}")


def cmd_start(args: argparse.Namespace) -> int:
    service = _make_service(args)
    result = service.start_voting(args.caller)
    return _report(result, f"Voting phase: {result.data.get('phase')}")


def cmd_end(args: argparse.Namespace) -> int:
    service = _make_service(args)
    result = service.end_voting(args.caller)
    return _report(result, f"Voting phase: {result.data.get('phase')}")


def cmd_vote(args: argparse.Namespace) -> int:
    service = _make_service(args)
    result = service.vote(args.caller, args.proposal, args.support)
    return _report(
        result,
        f"Voted {result.data.get('choice')} on proposal {result.data.get('proposal_id')} "
        f"with weight {result.data.get('weight')}",
    )


def cmd_proposal(args: argparse.Namespace) -> int:
    service = _make_service(args)
    try:
        view = service.get_proposal(args.id)
        results = service.get_proposal_results(args.id)
    except VotingError as e:
        print(f"Failed: {e.message}", file=sys.stderr)
        return 1
    data = dataclasses.asdict(view)
    data["results"] = dataclasses.asdict(results)
    print(json.dumps(data, indent=2))
    return 0


def cmd_proposals(args: argparse.Namespace) -> int:
    service = _make_service(args)
    views = [dataclasses.asdict(v) for v in service.list_proposals()]
    print(json.dumps(views, indent=2))
    return 0


def cmd_voter(args: argparse.Namespace) -> int:
    service = _make_service(args)
    print(json.dumps(dataclasses.asdict(service.get_voter_info(args.id)), indent=2))
    return 0


def cmd_check_invariants(args: argparse.Namespace) -> int:
    """Check the stored snapshot for consistency."""
    service = _make_service(args)
    errors = check_state(service.snapshot())
    if errors:
        for err in errors:
            print(f"Invariant violation: {err}", file=sys.stderr)
        return 1
    print("All invariants hold")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="weighted-voting",
        description="Weighted, permissioned governance voting",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Directory for state.json and events.jsonl (default: WV_DATA_DIR or data/)",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Path to a .env file (default: search from the working directory)",
    )
    sub = parser.add_subparsers(dest="command")

    # init
    p_init = sub.add_parser("init", help="Initialise state with an administrator")
    p_init.add_argument("--admin", help="Administrator identity (default: WV_ADMIN)")

    # status
    sub.add_parser("status", help="Show system status")

    # whitelist
    p_wl = sub.add_parser("whitelist", help="Whitelist a voter with a weight")
    p_wl.add_argument("--caller", required=True, help="Caller identity")
    p_wl.add_argument("--voter", required=True, help="Voter identity")
    p_wl.add_argument("--weight", required=True, type=int, help="Voting weight (>= 1)")

    # create-proposal
    p_cp = sub.add_parser("create-proposal", help="Create a new proposal")
    p_cp.add_argument("--caller", required=True, help="Caller identity")
    p_cp.add_argument("--description", required=True, help="Proposal description")

    # start / end
    p_start = sub.add_parser("start", help="Open the voting session")
    p_start.add_argument("--caller", required=True, help="Caller identity")
    p_end = sub.add_parser("end", help="Close the voting session")
    p_end.add_argument("--caller", required=True, help="Caller identity")

    # vote
    p_vote = sub.add_parser("vote", help="Cast a weighted vote")
    p_vote.add_argument("--caller", required=True, help="Voter identity")
    p_vote.add_argument("--proposal", required=True, type=int, help="Proposal ID")
    side = p_vote.add_mutually_exclusive_group(required=True)
    side.add_argument("--for", dest="support", action="store_true", help="Vote for")
    side.add_argument("--against", dest="support", action="store_false", help="Vote against")

    # reads
    p_prop = sub.add_parser("proposal", help="Show one proposal and its results")
    p_prop.add_argument("--id", required=True, type=int, help="Proposal ID")
    sub.add_parser("proposals", help="List all proposals")
    p_voter = sub.add_parser("voter", help="Show voter info")
    p_voter.add_argument("--id", required=True, help="Voter identity")

    # check-invariants
    sub.add_parser("check-invariants", help="Check stored state for consistency")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "init": cmd_init,
        "status": cmd_status,
        "whitelist": cmd_whitelist,
        "create-proposal": cmd_create_proposal,
        "start": cmd_start,
        "end": cmd_end,
        "vote": cmd_vote,
        "proposal": cmd_proposal,
        "proposals": cmd_proposals,
        "voter": cmd_voter,
        "check-invariants": cmd_check_invariants,
    }

    handler = commands.get(args.command)
    if handler is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    try:
        config = _load_config(args)
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        return handler(args)
    except ValueError as e:
        # Bad administrator or unrecoverable state
        print(f"Failed: {e}", file=sys.stderr)
        return 1
    except Timeout as e:
        print(f"Failed: data directory is busy ({e})", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
