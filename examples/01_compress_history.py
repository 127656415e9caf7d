#!/usr/bin/env python3
"""01_compress_history.py — ctxcompress pipeline demo.

Builds a long coding-agent history (a task message followed by many
read_file call/result pairs), compresses it for a small-context model and
prints the per-layer metrics.

Constants can be tuned through CTXC_* environment variables, e.g.
CTXC_KEEP_RECENT_TURNS=2 or CTXC_STRIP_STALE_THINKING=1.

Prerequisites:
    pip install -e .[dev]

Usage:
    python examples/01_compress_history.py
    CTXC_KEEP_RECENT_MESSAGES=10 python examples/01_compress_history.py
"""

from __future__ import annotations

import logging

from ctxcompress import (
    CompressionConfig,
    ContextCompressor,
    ModelDescriptor,
    parse_messages,
)


def build_history(n_turns: int) -> list[dict]:
    history: list[dict] = [{"role": "user", "content": "Port the config loader to TOML."}]
    for t in range(n_turns):
        source = "\n".join(f"{t:03d}:{row:03d}  value = load(section, key)" for row in range(80))
        history.append(
            {
                "role": "assistant",
                "content": [
                    {"type": "thinking", "thinking": f"Check module {t} for config reads."},
                    {
                        "type": "toolCall",
                        "id": f"call_{t}",
                        "name": "read_file",
                        "arguments": {"path": f"pkg/module_{t}.py"},
                    },
                ],
            }
        )
        history.append(
            {
                "role": "toolResult",
                "toolCallId": f"call_{t}",
                "toolName": "read_file",
                "content": [{"type": "text", "text": source}],
            }
        )
    return history


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(name)s: %(message)s")

    # ------------------------------------------------------------------
    # 1. Parse the stored history into typed messages.
    # ------------------------------------------------------------------
    messages = parse_messages(build_history(40))

    # ------------------------------------------------------------------
    # 2. Compress for a 16k-context model (budget = 12000 tokens).
    # ------------------------------------------------------------------
    compressor = ContextCompressor(CompressionConfig.from_env())
    model = ModelDescriptor(id="small-model", context_window=16_000)
    result = compressor.compress_with_report(messages, model)

    # ------------------------------------------------------------------
    # 3. Inspect the report.
    # ------------------------------------------------------------------
    report = result.report
    print()
    print(f"Budget:   {report.budget} tokens")
    print(f"Before:   {report.messages_before} messages, {report.tokens_before} tokens")
    print(f"After:    {report.messages_after} messages, {report.tokens_after} tokens")
    for layer in report.layers:
        print(
            f"  {layer.layer}: {layer.messages_before} -> {layer.messages_after} messages, "
            f"saved {layer.tokens_saved} tokens"
        )
    print(f"Anchor kept: {result.messages[0] == messages[0]}")


if __name__ == "__main__":
    main()
