"""Command-line interface for VTT Translator."""

from __future__ import annotations

import asyncio
import argparse
import logging
import signal
import sys
from pathlib import Path
from typing import Dict, List

from tqdm import tqdm
from tqdm.contrib.logging import logging_redirect_tqdm

from .config import (
    TranslatorConfig,
    DEFAULT_BASE_URL,
    DEFAULT_CHUNK_DELAY,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_FILE_DELAY,
    DEFAULT_GLOSSARY_FILENAME,
    DEFAULT_MAX_RETRIES,
    DEFAULT_MODEL,
)
from .credentials import DotenvSecretStore, clear_api_key, load_api_key, save_api_key
from .glossary import Glossary, load_glossary
from .job_queue import JobQueue, RunOutcome
from .llm_client import create_client
from .models import JobStatus, TranslationJob
from .parser import output_path_for, save_vtt, validate_vtt_file
from .session import TranslationSessionClient


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S"
    )
    # 第三方库日志太多
    for name in ("httpx", "openai"):
        logging.getLogger(name).setLevel(logging.WARNING)


def parse_arguments(argv: List[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Chunked LLM WebVTT subtitle translator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s talk.vtt                          # Translate to talk_vi.vtt
  %(prog)s a.vtt b.vtt -o out/               # Batch, write into out/
  %(prog)s talk.vtt -g glossary.txt          # Use glossary
  %(prog)s talk.vtt --target-language French --suffix _fr
  %(prog)s --api-key sk-... --save-key       # Remember the API key
        """
    )

    # Positional arguments
    parser.add_argument("input_paths", nargs="*", metavar="FILE", help="Input VTT files")
    parser.add_argument("-o", "--output-dir", help="Directory for translated files")

    # Glossary
    parser.add_argument("-g", "--glossary", dest="glossary_path", help="Glossary file path")

    # Languages
    parser.add_argument("--source-language", default="English")
    parser.add_argument("--target-language", default="Vietnamese")
    parser.add_argument("--suffix", default="_vi", help="Suffix for output file names")

    # API options
    parser.add_argument("--api-key", help="API key (or set DEEPSEEK_API_KEY)")
    parser.add_argument("--base-url", default=DEFAULT_BASE_URL)
    parser.add_argument("--model", dest="model_name", default=DEFAULT_MODEL)
    parser.add_argument("--env-file", default=".env", help="Where --save-key stores the key")
    parser.add_argument("--save-key", action="store_true", help="Store --api-key for later runs")
    parser.add_argument("--clear-key", action="store_true", help="Remove the stored API key")

    # Pacing
    parser.add_argument("--chunk-size", type=int, default=DEFAULT_CHUNK_SIZE, help="Cues per request")
    parser.add_argument("--chunk-delay", type=float, default=DEFAULT_CHUNK_DELAY, help="Seconds between chunks")
    parser.add_argument("--file-delay", type=float, default=DEFAULT_FILE_DELAY, help="Seconds between files")
    parser.add_argument("--max-retries", type=int, default=DEFAULT_MAX_RETRIES, help="Retries per chunk")

    # Misc
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")

    return parser.parse_args(argv)


class ChunkProgress:
    """One tqdm bar per job, advanced as chunks complete."""

    def __init__(self):
        self._bars: Dict[int, tqdm] = {}

    def update(self, job: TranslationJob) -> None:
        if job.total_chunks == 0:
            return

        bar = self._bars.get(job.id)
        if bar is None:
            bar = tqdm(total=job.total_chunks, desc=job.name, unit="chunk", leave=True)
            self._bars[job.id] = bar

        done = job.current_chunk if job.status is JobStatus.COMPLETED else job.current_chunk - 1
        bar.n = max(done, 0)
        bar.set_postfix(chars=job.streamed_chars, refresh=False)
        bar.refresh()

        if job.status is not JobStatus.PROCESSING:
            bar.close()
            del self._bars[job.id]

    def close(self) -> None:
        for bar in self._bars.values():
            bar.close()
        self._bars.clear()


def write_results(jobs: List[TranslationJob], config: TranslatorConfig, output_dir: Path | None) -> None:
    """Save completed jobs; keep partial output of failed ones for inspection."""
    logger = logging.getLogger(__name__)

    for job in jobs:
        out_path = output_path_for(job.source, config.output_suffix, output_dir)
        if job.status is JobStatus.COMPLETED:
            save_vtt(job.output, out_path)
        elif job.status is JobStatus.ERROR:
            logger.error(f"{job.name}: {job.error}")
            if job.output.strip():
                partial = out_path.with_name(out_path.name + ".partial")
                save_vtt(job.output, partial)
                logger.info(f"Partial output kept in {partial}")


def install_stop_handler(loop: asyncio.AbstractEventLoop, queue: JobQueue) -> bool:
    """
    Map the first Ctrl+C to a cooperative stop of the queue.

    The handler removes itself, so a second Ctrl+C gets the default
    KeyboardInterrupt and abandons the in-flight request.

    Returns:
        False where the loop does not support signal handlers
    """
    def on_sigint() -> None:
        loop.remove_signal_handler(signal.SIGINT)
        queue.cancel()
        logging.getLogger(__name__).warning("Stopping after the current request; press Ctrl+C again to abort")

    try:
        loop.add_signal_handler(signal.SIGINT, on_sigint)
    except (NotImplementedError, RuntimeError):
        return False
    return True


async def main_async(args: argparse.Namespace) -> int:
    """Main async workflow."""
    logger = logging.getLogger(__name__)
    store = DotenvSecretStore(Path(args.env_file))

    if args.clear_key:
        clear_api_key(store)
    if args.save_key:
        if not args.api_key:
            logger.error("--save-key needs --api-key")
            return 1
        save_api_key(store, args.api_key)

    if not args.input_paths:
        if args.clear_key or args.save_key:
            return 0
        logger.error("No input files given")
        return 1

    config = TranslatorConfig.from_args(args)
    if not config.api_key:
        config.api_key = load_api_key(store)

    # 验证配置
    error = config.validate()
    if error:
        logger.error(error)
        return 1

    # 验证输入文件
    paths = [Path(p).expanduser().resolve() for p in args.input_paths]
    for path in paths:
        error = validate_vtt_file(path)
        if error:
            logger.error(f"{path.name}: {error}")
            return 1

    # 加载术语表
    glossary = Glossary()
    if args.glossary_path:
        glossary = load_glossary(Path(args.glossary_path).expanduser().resolve())
    elif Path(DEFAULT_GLOSSARY_FILENAME).exists():
        logger.info(f"Auto-detected '{DEFAULT_GLOSSARY_FILENAME}'")
        glossary = load_glossary(Path(DEFAULT_GLOSSARY_FILENAME))

    client = create_client(config.api_key, config.base_url, config.request_timeout)
    session_client = TranslationSessionClient(client, config.model_name, config.temperature)
    queue = JobQueue(session_client, config, glossary=glossary)
    queue.add_files(paths)

    progress = ChunkProgress()
    queue.on_job_updated = progress.update

    loop = asyncio.get_running_loop()
    stop_handler_installed = install_stop_handler(loop, queue)

    try:
        with logging_redirect_tqdm():
            outcome = await queue.process()
    finally:
        if stop_handler_installed:
            loop.remove_signal_handler(signal.SIGINT)
        progress.close()
        await client.close()

    output_dir = Path(args.output_dir).expanduser().resolve() if args.output_dir else None
    write_results(queue.jobs, config, output_dir)

    stats = queue.stats()
    notification = queue.events.notification
    if notification:
        logger.info(notification.message)
    logger.info(
        f"Total: {stats.total}, completed: {stats.completed}, "
        f"failed: {stats.failed}, remaining: {stats.remaining}"
    )

    if outcome is RunOutcome.STOPPED:
        return 130
    return 0 if outcome is RunOutcome.SUCCESS else 1


def main() -> None:
    """CLI entry point."""
    args = parse_arguments()
    setup_logging(args.verbose)

    try:
        exit_code = asyncio.run(main_async(args))
        sys.exit(exit_code)
    except KeyboardInterrupt:
        print("\nInterrupted by user.")
        sys.exit(130)
    except Exception as e:
        logging.error(f"Fatal error: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
