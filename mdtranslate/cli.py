# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
import argparse
import json
import os
import sys
from pathlib import Path

from mdtranslate.translator import default_params
from mdtranslate.utils.dotenv import load_env_file
from mdtranslate.utils.i18n import t

# Exit codes for orchestration environments
EC_OK = 0
EC_INVALID_INPUT = 10
EC_TRANSLATION_FAILED = 30

MARKDOWN_SUFFIXES = {".md", ".markdown"}


def _fill_translator_args(ns: argparse.Namespace) -> dict:
    # pull defaults from env if not provided
    return {
        "skip_translate": ns.skip_translate,
        "base_url": ns.base_url or os.getenv("OPENAI_BASE_URL") or os.getenv("BASE_URL"),
        "api_key": ns.api_key or os.getenv("OPENAI_API_KEY") or os.getenv("API_KEY"),
        "model_id": ns.model_id or os.getenv("OPENAI_MODEL"),
        "fallback_model_id": ns.fallback_model_id or os.getenv("OPENAI_FALLBACK_MODEL"),
        "to_lang": ns.to_lang,
        "custom_prompt": ns.custom_prompt,
        "chunk_size": ns.chunk_size,
        "header_level": ns.header_level,
        "concurrent": ns.concurrent,
        "temperature": ns.temperature,
        "timeout": ns.timeout,
        "retry": ns.retry,
        "system_proxy_enable": ns.system_proxy,
        "save_sent_dir": ns.save_sent,
        "save_received_dir": ns.save_received,
    }


def _check_inputs(ns: argparse.Namespace, translator_args: dict) -> list[str]:
    paths = []
    for raw in ns.inputs:
        path = Path(raw)
        if not path.is_file():
            print(t("file_not_found", lang=ns.lang, path=raw))
            raise SystemExit(EC_INVALID_INPUT)
        if path.suffix.lower() not in MARKDOWN_SUFFIXES:
            print(t("not_markdown", lang=ns.lang, path=raw))
            raise SystemExit(EC_INVALID_INPUT)
        paths.append(str(path))

    if not translator_args["skip_translate"]:
        if not translator_args["api_key"]:
            print(t("missing_api_key", lang=ns.lang))
            raise SystemExit(EC_INVALID_INPUT)
        if not translator_args["model_id"]:
            print(t("missing_model", lang=ns.lang))
            raise SystemExit(EC_INVALID_INPUT)
        translator_args["base_url"] = translator_args["base_url"] or "https://api.openai.com/v1"
    return paths


def _write_manifest(path: str, batch, ns: argparse.Namespace, env_path_used: str | None):
    from mdtranslate import __version__
    manifest = {
        "version": __version__,
        "settings": {
            "to_lang": ns.to_lang,
            "skip_translate": ns.skip_translate,
            "concurrent": ns.concurrent,
            "chunk_size": ns.chunk_size,
            "header_level": ns.header_level,
            "env_file": env_path_used,
        },
        "documents": [
            {
                "input": result.identifier,
                "succeeded": result.succeeded,
                "skipped": result.skipped,
                "output": result.output,
                "error": result.error,
                "issues": result.report.issues if result.report else [],
                "warnings": result.report.warnings if result.report else [],
                "statistics": result.statistics.to_dict() if result.statistics else None,
            }
            for result in batch.results
        ],
        "success_count": batch.success_count,
        "failure_count": batch.failure_count,
        "elapsed_seconds": round(batch.elapsed_seconds, 3),
    }
    man_path = Path(path)
    man_path.parent.mkdir(parents=True, exist_ok=True)
    man_path.write_text(json.dumps(manifest, ensure_ascii=False, indent=2), encoding="utf-8")
    print(t("generated", lang=ns.lang, path=str(man_path.resolve())))


def _run_translate(ns: argparse.Namespace, env_path_used: str | None) -> int:
    translator_args = _fill_translator_args(ns)
    paths = _check_inputs(ns, translator_args)
    if not paths:
        print(t("nothing_to_do", lang=ns.lang))
        return EC_OK

    from mdtranslate.translator.md_translator import MDTranslatorConfig
    from mdtranslate.workflow.file_store import FileDocumentStore
    from mdtranslate.workflow.md_workflow import MarkdownBatchWorkflow, MarkdownBatchWorkflowConfig

    config = MarkdownBatchWorkflowConfig(
        translator_config=MDTranslatorConfig(**translator_args),
        skip_translated=not ns.force,
        attach_marker=not ns.no_marker,
    )
    workflow = MarkdownBatchWorkflow(config, store=FileDocumentStore(output_dir=ns.out_dir))
    batch = workflow.translate(paths)

    for result in batch.results:
        if result.skipped:
            print(t("already_translated", lang=ns.lang, path=result.identifier))
        elif result.succeeded:
            print(t("generated", lang=ns.lang, path=result.output))
        else:
            print(t("document_failed", lang=ns.lang, path=result.identifier, reason=result.error))
    print(t("summary", lang=ns.lang, success=batch.success_count, failure=batch.failure_count,
            seconds=batch.elapsed_seconds))

    if ns.emit_manifest:
        _write_manifest(ns.emit_manifest, batch, ns, env_path_used)
    return EC_OK if batch.failure_count == 0 else EC_TRANSLATION_FAILED


def _add_translate_subparser(subparsers: argparse._SubParsersAction) -> None:
    sp = subparsers.add_parser(
        "translate",
        help="Translate Markdown files",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    sp.add_argument("inputs", nargs="+", help="Markdown files to translate")
    sp.add_argument("--out-dir", default=None, help="Output directory (default: overwrite the input files)")
    sp.add_argument("--emit-manifest", help="Write JSON manifest to this path")
    sp.add_argument("--force", action="store_true", help="Translate files that already carry the translated marker")
    sp.add_argument("--no-marker", action="store_true", help="Do not mark written files as translated")
    sp.add_argument("--save-sent", metavar="DIR", help="Save every chunk sent to the model as DIR/<file>/sent<index>.md")
    sp.add_argument("--save-received", metavar="DIR",
                    help="Save every chunk received from the model as DIR/<file>/received<index>.md")

    # AI and behavior
    sp.add_argument("--skip-translate", action="store_true", help="Run the pipeline without calling the LLM")
    sp.add_argument("--base-url", help="LLM API base URL; defaults to OPENAI_BASE_URL")
    sp.add_argument("--api-key", help="LLM API key; defaults to OPENAI_API_KEY")
    sp.add_argument("--model-id", help="Model ID; defaults to OPENAI_MODEL")
    sp.add_argument("--fallback-model-id", help="Model used when the primary one fails; defaults to OPENAI_FALLBACK_MODEL")
    sp.add_argument("--to-lang", dest="to_lang", default=default_params["to_lang"], help="Target language")
    sp.add_argument("--custom-prompt", help="Custom translation prompt")
    sp.add_argument("--system-proxy", action="store_true", help="Use proxy settings from the environment")

    sp.add_argument("--chunk-size", type=int, default=default_params["chunk_size"], help="Chunk size in UTF-8 bytes")
    sp.add_argument("--header-level", type=int, choices=range(1, 7), default=default_params["header_level"],
                    help="Deepest header level used as a split point")
    sp.add_argument("--concurrent", type=int, default=default_params["concurrent"],
                    help="Maximum number of chunks translated at the same time")
    sp.add_argument("--temperature", type=float, default=default_params["temperature"], help="Temperature")
    sp.add_argument("--timeout", type=int, default=default_params["timeout"], help="Timeout (seconds)")
    sp.add_argument("--retry", type=int, default=default_params["retry"], help="Retry count on failure")

    sp.set_defaults(cmd="translate")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="mdtranslate: Markdown translation that keeps code and structure intact",
        epilog=(
            "Examples:\n"
            "  mdtranslate translate ./docs/intro.md --to-lang English --model-id gpt-4o\n"
            "  mdtranslate translate a.md b.md --skip-translate --out-dir output\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="cmd")

    _add_translate_subparser(subparsers)

    ver = subparsers.add_parser("version", help="Show version")
    ver.set_defaults(cmd="version")

    parser.add_argument(
        "--env-file", help="Load environment variables from file (default: ./.env)", default=None
    )
    parser.add_argument(
        "--no-env", action="store_true", help="Do not auto-load .env from current directory"
    )
    parser.add_argument(
        "--lang", choices=["en", "zh"], default=os.getenv("MDTRANSLATE_LANG", "en"),
        help="Language for CLI messages (default: en)"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    argv = sys.argv[1:] if argv is None else argv

    # No-arg hint
    if not argv:
        parser.print_help()
        return EC_OK

    args = parser.parse_args(argv)

    env_path_used = None
    if not args.no_env:
        env_path_used, loaded_keys = load_env_file(args.env_file)
        if env_path_used:
            print(t("env_loaded", lang=args.lang, path=env_path_used, count=len(loaded_keys)))

    if args.cmd == "version":
        from mdtranslate import __version__
        print(__version__)
        return EC_OK

    if args.cmd == "translate":
        if args.chunk_size <= 0 or args.concurrent <= 0:
            parser.error("--chunk-size and --concurrent must be positive")
        return _run_translate(args, env_path_used)

    parser.print_help()
    return EC_OK


if __name__ == "__main__":
    sys.exit(main())
