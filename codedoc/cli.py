"""Command-line entry point: ``codedoc generate`` and ``codedoc build-cache``."""

import argparse
import logging
import os
import sys

from codedoc.backends import ContentProducer, build_backend
from codedoc.cache_builder import CacheBuildError, build_cache_from_settings
from codedoc.config import ConfigError, load_settings
from codedoc.generator import DocGenerator
from codedoc.prompts import PromptBuilder
from codedoc.publishers import PublisherConfigError, build_publishers


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--source",
        nargs="+",
        default=None,
        help="Source directories to scan (default: app config routes database)",
    )
    parser.add_argument("--output", default=None, help="Documentation output directory")
    parser.add_argument("--model", default=None, help="Model identifier")
    parser.add_argument(
        "--api-provider",
        default=None,
        choices=["openai", "azure", "claude", "gemini", "ollama"],
        help="Backend used to generate documentation",
    )
    parser.add_argument("--extensions", nargs="+", default=None, help="File extensions to process")
    parser.add_argument("--skip", nargs="+", default=None, help="Directories to skip")
    parser.add_argument("--prompt-template", default=None, help="Custom prompt template file")
    parser.add_argument("--cache-path", default=None, help="Cache file (default: <output>/.codedoc_cache.json)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="codedoc",
        description="Incremental documentation generator for source trees",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s generate --source app routes --output documentation
  %(prog)s generate --api-provider ollama --model llama3 --bypass-cache
  %(prog)s build-cache --source app --output documentation
        """,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser("generate", help="Generate documentation")
    _add_common_arguments(generate)
    generate.add_argument("--max-tokens", type=int, default=None, help="Token budget per file")
    generate.add_argument("--no-cache", action="store_true", help="Disable the hash cache for this run")
    generate.add_argument(
        "--bypass-cache",
        action="store_true",
        help="Regenerate every file without a document, ignoring stored hashes",
    )
    generate.add_argument("--azure-endpoint", default=None, help="Azure OpenAI endpoint")
    generate.add_argument("--azure-deployment", default=None, help="Azure OpenAI deployment name")
    generate.add_argument("--azure-api-version", default=None, help="Azure OpenAI API version")
    generate.add_argument("--jira", action="store_true", help="Publish documents to Jira")
    generate.add_argument("--confluence", action="store_true", help="Publish documents to Confluence")

    build_cache = subparsers.add_parser(
        "build-cache", help="Seed the cache from existing source and documentation files"
    )
    _add_common_arguments(build_cache)

    return parser


def apply_overrides(args: argparse.Namespace) -> None:
    """Write CLI flags into the environment so settings have a single source."""
    overrides = {
        "CODEDOC_SOURCE_DIRS": ",".join(args.source) if args.source else None,
        "CODEDOC_OUTPUT_DIR": args.output,
        "CODEDOC_MODEL": args.model,
        "CODEDOC_API_PROVIDER": args.api_provider,
        "CODEDOC_EXTENSIONS": ",".join(args.extensions) if args.extensions else None,
        "CODEDOC_SKIP_DIRS": ",".join(args.skip) if args.skip else None,
        "CODEDOC_PROMPT_TEMPLATE": args.prompt_template,
        "CODEDOC_CACHE_PATH": args.cache_path,
    }
    if args.command == "generate":
        overrides.update({
            "CODEDOC_MAX_TOKENS": str(args.max_tokens) if args.max_tokens is not None else None,
            "CODEDOC_USE_CACHE": "false" if args.no_cache else None,
            "AZURE_OPENAI_ENDPOINT": args.azure_endpoint,
            "AZURE_OPENAI_DEPLOYMENT": args.azure_deployment,
            "AZURE_OPENAI_API_VERSION": args.azure_api_version,
        })

    for name, value in overrides.items():
        if value is not None:
            os.environ[name] = value


def configure_logging() -> None:
    level = os.getenv("CODEDOC_LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def run_generate(args: argparse.Namespace, settings) -> None:
    try:
        backend = build_backend(settings)
        publishers = build_publishers(settings, jira=args.jira, confluence=args.confluence)
    except (ValueError, PublisherConfigError) as e:
        print(f"[Error] {e}")
        sys.exit(1)

    print("=" * 70)
    print("[codedoc] DOCUMENTATION GENERATOR")
    print("=" * 70)
    print(f"Sources:  {', '.join(settings.source_dirs)}")
    print(f"Output:   {settings.output_dir}")
    print(f"Backend:  {backend.provider.value} ({settings.model})")
    if not settings.use_cache:
        print("Cache:    disabled")
    print()

    generator = DocGenerator.from_settings(
        settings,
        producer=ContentProducer(backend, PromptBuilder(settings.prompt_template)),
        force_rebuild=args.bypass_cache,
        publishers=publishers,
    )
    try:
        generator.generate()
    except Exception as e:
        print(f"[Error] Documentation generation failed: {e}")
        sys.exit(1)


def run_build_cache(settings) -> None:
    print("[Cache] Starting cache build process...")
    print(f"[Cache] Source directories: {', '.join(settings.source_dirs)}")
    print(f"[Cache] Output directory: {settings.output_dir}")
    print(f"[Cache] Target cache file: {settings.resolved_cache_path}")
    try:
        build_cache_from_settings(settings)
    except CacheBuildError as e:
        print(f"[Error] Error building cache file: {e}")
        sys.exit(1)


def main(argv=None):
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    apply_overrides(args)

    try:
        settings = load_settings()
    except ConfigError as e:
        print(f"[Error] {e}")
        sys.exit(1)

    configure_logging()

    if args.command == "generate":
        run_generate(args, settings)
    else:
        run_build_cache(settings)


if __name__ == "__main__":
    main()
