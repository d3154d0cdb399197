"""
CLI entry point for the TradeLogic workbench.

Usage:
    tradelogic analyze request.json            # forensic verdict for one input
    tradelogic analyze request.json --save     # ... and archive it in the vault
    tradelogic vault list
    tradelogic vault export -o backup.json
    tradelogic vault import backup.json
    tradelogic vault show <KEY>
    tradelogic vault remove <KEY>
    tradelogic consistency <KEY> <KEY> [...]   # trend audit over archived verdicts
    tradelogic config show
    tradelogic config set --tier RETAIL --risk CONSERVATIVE --name "Trader Pro"
    tradelogic draft show | clear
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from tradelogic.agents.consistency import ConsistencyEngine, check_history
from tradelogic.data.models import (
    AnalysisResult,
    AppConfig,
    CapitalAdvisory,
    CapitalTier,
    ConsistencyResult,
    RiskProfile,
    StockAnalysisInput,
)
from tradelogic.data.validation import check_submission_ready, validate_capital_fit
from tradelogic.errors import (
    AnalysisError,
    ArchiveImportError,
    InputValidationError,
    SelectionError,
)
from tradelogic.graph.workflow import run_analysis
from tradelogic.infra.archive import identity_key
from tradelogic.infra.config import AppContext, build_context, format_timestamp, get_today

BORDER = "=" * 60


# ---------------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------------


def _print_result(result: AnalysisResult) -> None:
    """Pretty-print the forensic verdict to stdout."""
    print(f"\n{BORDER}")
    print(f"  TRADELOGIC FORENSIC VERDICT — {result.ticker}")
    print(BORDER)
    print(f"  Price: {result.price_info.current}  |  Bandar avg: {result.price_info.bandar_avg}"
          f"  ({result.price_info.diff_percent:+.2f}%)  {result.price_info.status}")
    print(f"  Market cap: {result.market_cap_analysis.category.value}")
    print(f"  Supply/Demand: bid {result.supply_demand.bid_strength:.0f}"
          f" / offer {result.supply_demand.offer_strength:.0f}  {result.supply_demand.verdict}")
    print(f"  Prediction: {result.prediction.direction.value}"
          f" ({result.prediction.probability:.0f}%)")
    print(f"  Stress test: {'PASSED' if result.stress_test.passed else 'FAILED'}"
          f" ({result.stress_test.score:.0f}/100)")
    print(f"\n{result.summary}")
    print(f"\nBear case: {result.bear_case}")

    plan = result.strategy.best_plan
    print(f"\n{BORDER}")
    print(f"  BEST TIMEFRAME: {result.strategy.best_timeframe.value}  —  {plan.status.value}")
    levels = plan.actionable_levels()
    if levels is None:
        print("  FORBIDDEN: no entry or exit levels are actionable.")
    else:
        entry, tp, sl = levels
        print(f"  Entry: {entry}  |  TP: {tp}  |  SL: {sl}")
    print(f"{BORDER}\n")
    print(result.full_analysis)


def _print_consistency(result: ConsistencyResult) -> None:
    print(f"\n{BORDER}")
    print(f"  TREND AUDIT — {result.ticker} ({result.data_points} data points)")
    print(BORDER)
    print(f"  Verdict: {result.trend_verdict.value}  |  Consistency: {result.consistency_score:.0f}/100")
    print(f"\n{result.analysis}")
    print(f"\nAction: {result.action_item}\n")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _load_input(path: str, config: AppConfig) -> StockAnalysisInput:
    raw: dict[str, Any] = json.loads(Path(path).read_text(encoding="utf-8"))
    if "riskProfile" not in raw and "risk_profile" not in raw:
        raw["riskProfile"] = config.risk_profile.value
    if "capitalTier" not in raw and "capital_tier" not in raw:
        raw["capitalTier"] = config.default_tier.value
    return StockAnalysisInput.model_validate(raw)


def _print_advisory(advisory: CapitalAdvisory | None) -> None:
    if advisory is not None:
        print(f"⚠️  {advisory.severity.value}: {advisory.message}")


def _keep_draft(ctx: AppContext, data: StockAnalysisInput, error: str) -> None:
    ctx.store.save_draft(data)
    print(f"❌ {error}\n   Input kept as draft (see `tradelogic draft show`).")


def _cmd_analyze(ctx: AppContext, args: argparse.Namespace) -> int:
    try:
        data = _load_input(args.input, ctx.config)
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        print(f"❌ Could not read analysis input: {exc}")
        return 1

    # No chat model is built for input that fails the local gate.
    try:
        check_submission_ready(data)
    except InputValidationError as exc:
        _print_advisory(validate_capital_fit(data.capital, data.capital_tier))
        _keep_draft(ctx, data, str(exc))
        return 1

    print(f"\n🔍 Auditing {data.ticker} — this may take a minute …\n")
    state = asyncio.run(
        run_analysis(data, llm=ctx.require_llm(), send_top_k=ctx.settings.send_top_k)
    )

    _print_advisory(state.get("advisory"))

    error = state.get("error")
    if error:
        if state.get("error_kind") == "validation":
            _keep_draft(ctx, data, error)
        else:
            print(f"❌ {error}")
        return 1

    result: AnalysisResult = state["result"]
    ctx.store.clear_draft()
    _print_result(result)

    if args.save:
        archived = ctx.archive.add(result)
        print(f"💾 Snapshot archived to vault (key={identity_key(archived)})")
    return 0


def _cmd_vault(ctx: AppContext, args: argparse.Namespace) -> int:
    archive = ctx.archive
    if args.vault_command == "list":
        if not len(archive):
            print("Vault is empty.")
            return 0
        for entry in archive:
            print(
                f"{identity_key(entry)}  {entry.ticker:<6}  "
                f"{format_timestamp(entry.timestamp, ctx.settings)}  "
                f"{entry.prediction.direction.value:<11}  "
                f"stress {entry.stress_test.score:.0f}"
            )
        return 0

    if args.vault_command == "export":
        today = get_today(ctx.settings).isoformat()
        out = Path(args.output or f"tradelogic_vault_backup_{today}.json")
        out.write_text(archive.export(), encoding="utf-8")
        print(f"📦 Exported {len(archive)} cases to {out}")
        return 0

    if args.vault_command == "import":
        try:
            before = len(archive)
            merged = archive.import_snapshot(Path(args.file).read_text(encoding="utf-8"))
        except (OSError, ArchiveImportError) as exc:
            print(f"❌ Import failed, vault unchanged: {exc}")
            return 1
        print(f"✅ Successfully imported {len(merged) - before} cases.")
        return 0

    if args.vault_command == "show":
        entry = archive.get(args.key)
        if entry is None:
            print(f"Nothing stored under {args.key}")
            return 1
        print(f"Archived {format_timestamp(entry.timestamp, ctx.settings)}")
        _print_result(entry)
        return 0

    if args.vault_command == "remove":
        if archive.remove(args.key):
            print(f"🗑️  Removed {args.key}")
        else:
            print(f"Nothing stored under {args.key}")
        return 0

    return 2


def _first_mismatch(ctx: AppContext, keys: list[str]) -> str | None:
    """Name the first key whose ticker differs from the keys before it."""
    chosen: list[str] = []
    for key in keys:
        entry = ctx.archive.get(key)
        if entry is None:
            continue
        if not ctx.archive.is_selectable(entry, chosen):
            active = ctx.archive.active_ticker(chosen)
            return f"{key} ({entry.ticker}) cannot join a {active} selection"
        chosen.append(key)
    return None


def _cmd_consistency(ctx: AppContext, args: argparse.Namespace) -> int:
    selection = ctx.archive.prune_selection(args.keys)
    dangling = sorted(set(args.keys) - selection)
    if dangling:
        print(f"⚠️  Ignoring unknown keys: {', '.join(dangling)}")

    mismatch = _first_mismatch(ctx, [k for k in args.keys if k in selection])
    if mismatch:
        print(f"❌ {mismatch}")
        return 1

    try:
        history = ctx.archive.select_subset(selection)
        check_history(history)
    except SelectionError as exc:
        print(f"❌ {exc}")
        return 1

    engine = ConsistencyEngine(ctx.require_llm(), send_top_k=ctx.settings.send_top_k)
    try:
        result = asyncio.run(engine.run_consistency_check(history))
    except AnalysisError as exc:
        print(f"❌ Failed to run consistency check. {exc}")
        return 1

    _print_consistency(result)
    return 0


def _cmd_config(ctx: AppContext, args: argparse.Namespace) -> int:
    config = ctx.config
    if args.config_command == "set":
        update: dict[str, Any] = {}
        if args.tier:
            update["default_tier"] = CapitalTier(args.tier)
        if args.risk:
            update["risk_profile"] = RiskProfile(args.risk)
        if args.name:
            update["user_name"] = args.name
        config = config.model_copy(update=update)
        ctx.store.save_config(config)
        ctx.config = config
        print("✅ Mandate updated successfully.")
    print(config.model_dump_json(by_alias=True, indent=2))
    return 0


def _cmd_draft(ctx: AppContext, args: argparse.Namespace) -> int:
    if args.draft_command == "clear":
        ctx.store.clear_draft()
        print("Draft cleared.")
        return 0
    draft = ctx.store.load_draft()
    if draft is None:
        print("No draft saved.")
    else:
        print(draft.model_dump_json(by_alias=True, indent=2))
    return 0


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tradelogic",
        description="TradeLogic forensic stock-analysis workbench",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable info logging")
    sub = parser.add_subparsers(dest="command", required=True)

    analyze = sub.add_parser("analyze", help="Request a forensic verdict")
    analyze.add_argument("input", help="Path to a JSON analysis request")
    analyze.add_argument("--save", action="store_true", help="Archive the verdict in the vault")

    vault = sub.add_parser("vault", help="Manage archived verdicts")
    vault_sub = vault.add_subparsers(dest="vault_command", required=True)
    vault_sub.add_parser("list", help="List archived verdicts, newest first")
    export = vault_sub.add_parser("export", help="Write the vault to a JSON file")
    export.add_argument("-o", "--output", default=None,
                        help="Output path (default: tradelogic_vault_backup_<DATE>.json)")
    imp = vault_sub.add_parser("import", help="Merge a JSON backup into the vault")
    imp.add_argument("file")
    show = vault_sub.add_parser("show", help="Re-open one archived verdict")
    show.add_argument("key")
    remove = vault_sub.add_parser("remove", help="Delete one archived verdict")
    remove.add_argument("key")

    consistency = sub.add_parser("consistency", help="Audit the trend of archived verdicts")
    consistency.add_argument("keys", nargs="+", help="Vault keys (same ticker, at least two)")

    config = sub.add_parser("config", help="Show or change the user mandate")
    config_sub = config.add_subparsers(dest="config_command", required=True)
    config_sub.add_parser("show")
    config_set = config_sub.add_parser("set")
    config_set.add_argument("--tier", choices=[t.value for t in CapitalTier])
    config_set.add_argument("--risk", choices=[r.value for r in RiskProfile])
    config_set.add_argument("--name")

    draft = sub.add_parser("draft", help="Inspect or reset the saved form draft")
    draft.add_argument("draft_command", choices=["show", "clear"])
    return parser


_COMMANDS = {
    "analyze": _cmd_analyze,
    "vault": _cmd_vault,
    "consistency": _cmd_consistency,
    "config": _cmd_config,
    "draft": _cmd_draft,
}


def main(argv: list[str] | None = None) -> None:
    args = _build_parser().parse_args(argv)
    if args.verbose:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    try:
        ctx = build_context()
    except ArchiveImportError as exc:
        print(f"❌ Stored vault is unreadable: {exc}")
        sys.exit(1)

    try:
        code = _COMMANDS[args.command](ctx, args)
    except KeyboardInterrupt:
        print("\n⚠️  Interrupted by user.")
        code = 130
    finally:
        ctx.close()

    if code:
        sys.exit(code)


if __name__ == "__main__":
    main()
