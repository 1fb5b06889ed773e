import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict

import jsonschema

from daily_bucket import DailyBucket
from parsed_run import CustomMetric, DetailedEvents, ParsedRun, RunParameter
from reconstructed_trade import ReconstructedTrade
from run_aggregator import RunAggregator
from trade_events import FillNearMissEvent, SlAdjustmentEvent, TpNearMissEvent, TradeKey

LOGGER = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parent / "schemas" / "parsed_run.schema.json"

EVENT_TYPES = {
    "tp_near_misses": TpNearMissEvent,
    "fill_near_misses": FillNearMissEvent,
    "sl_adjustments": SlAdjustmentEvent,
}


def _load_schema() -> Dict[str, Any]:
    with open(SCHEMA_PATH, "r", encoding="utf-8") as schema_file:
        return json.load(schema_file)


def _event_to_dict(event) -> Dict[str, Any]:
    payload = event._asdict()
    key = payload.pop("trade_key")
    payload["trade_id"] = key.trade_id if key is not None else None
    return payload


def _event_from_dict(event_type, payload: Dict[str, Any]):
    values = dict(payload)
    trade_id = values.pop("trade_id", None)
    values["trade_key"] = TradeKey(values["date"], trade_id) if trade_id is not None else None
    return event_type(**{name: values.get(name) for name in event_type._fields})


def parsed_run_to_dict(run: ParsedRun) -> Dict[str, Any]:
    return {
        "strategy_name": run.strategy_name,
        "run_name": run.run_name,
        "run_description": run.run_description,
        "net_pnl": run.net_pnl,
        "total_trades": run.total_trades,
        "win_rate": run.win_rate,
        "profit_factor": run.profit_factor,
        "max_drawdown": run.max_drawdown,
        "sharpe_ratio": run.sharpe_ratio,
        "daily_pnl": [asdict(bucket) for bucket in run.daily_pnl],
        "parameters": [param._asdict() for param in run.parameters],
        "custom_metrics": [metric._asdict() for metric in run.custom_metrics],
        "detailed_events": {
            name: [_event_to_dict(event) for event in getattr(run.detailed_events, name)]
            for name in EVENT_TYPES
        },
        "detailed_trades": [asdict(trade) for trade in run.detailed_trades],
    }


def validate_payload(payload: Dict[str, Any]):
    """
    Raises:
        ValueError: if the payload does not match schemas/parsed_run.schema.json.
    """
    try:
        jsonschema.validate(instance=payload, schema=_load_schema())
    except jsonschema.ValidationError as exc:
        LOGGER.warning("Parsed run validation failed: %s", exc.message)
        raise ValueError(f"Invalid parsed run payload: {exc.message}") from exc


def parsed_run_from_dict(payload: Dict[str, Any]) -> ParsedRun:
    validate_payload(payload)
    trades = [ReconstructedTrade(**trade) for trade in payload["detailed_trades"]]
    events = payload["detailed_events"]
    return ParsedRun(
        strategy_name=payload["strategy_name"],
        net_pnl=payload["net_pnl"],
        run_name=payload.get("run_name"),
        run_description=payload.get("run_description"),
        total_trades=payload.get("total_trades"),
        win_rate=payload.get("win_rate"),
        profit_factor=payload.get("profit_factor"),
        max_drawdown=payload.get("max_drawdown"),
        sharpe_ratio=payload.get("sharpe_ratio"),
        daily_pnl=[DailyBucket(**bucket) for bucket in payload["daily_pnl"]],
        parameters=[RunParameter(p["name"], p["value"], p["type"]) for p in payload["parameters"]],
        custom_metrics=[CustomMetric(m["name"], m["value"], m.get("description")) for m in payload["custom_metrics"]],
        detailed_events=DetailedEvents(**{
            name: [_event_from_dict(event_type, event) for event in events[name]]
            for name, event_type in EVENT_TYPES.items()
        }),
        detailed_trades=trades,
        line_statistics=RunAggregator(trades).aggregate().line_stats if trades else [],
    )


def dump_parsed_run(run: ParsedRun, path) -> Path:
    payload = parsed_run_to_dict(run)
    validate_payload(payload)
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as output:
        json.dump(payload, output, indent=2)
    return output_path


def load_parsed_run_file(path) -> ParsedRun:
    with open(path, "r", encoding="utf-8") as input_file:
        payload = json.load(input_file)
    return parsed_run_from_dict(payload)
