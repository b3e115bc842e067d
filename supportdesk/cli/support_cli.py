from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from typing import Any, Dict, List, Optional

from supportdesk.app.mcp.server import call_tool
from supportdesk.app.mcp.tools import build_registry


class CLIError(Exception):
    pass


def _parse_arguments(raw: Optional[str]) -> Dict[str, Any]:
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise CLIError(f"--args is not valid JSON: {exc.msg}") from exc
    if not isinstance(parsed, dict):
        raise CLIError("--args must be a JSON object")
    return parsed


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    port = args.port if args.port is not None else int(os.getenv("PORT", "3000"))
    uvicorn.run("supportdesk.main:app", host=args.host, port=port, reload=False)
    return 0


def cmd_tools(args: argparse.Namespace) -> int:
    registry = build_registry()
    for definition in registry.list_tools():
        required = ", ".join(definition["inputSchema"].get("required", []))
        print(f"{definition['name']}({required}) - {definition['description']}")
    return 0


def cmd_call(args: argparse.Namespace) -> int:
    registry = build_registry()
    envelope = {"name": args.name, "arguments": _parse_arguments(args.args)}
    status, body = asyncio.run(call_tool(registry, envelope))
    print(json.dumps(body, ensure_ascii=False, indent=2))
    return 0 if status == 200 else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run or exercise the support MCP tool server.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Start the HTTP server (SSE + /tool).")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=None, help="Defaults to $PORT or 3000.")
    serve.set_defaults(func=cmd_serve)

    tools = subparsers.add_parser("tools", help="List registered tools.")
    tools.set_defaults(func=cmd_tools)

    call = subparsers.add_parser("call", help="Invoke a tool once, without starting the server.")
    call.add_argument("name")
    call.add_argument("--args", default=None, help='JSON object, e.g. \'{"query": "billing"}\'.')
    call.set_defaults(func=cmd_call)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return args.func(args)
    except CLIError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
