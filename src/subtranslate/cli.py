from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from .env import load_dotenv_if_present
from .config import SubtranslateConfig
from .pipeline import ProgressEvent, SubtitlePipeline


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="subtranslate",
        description="subtranslate: 将 SRT 字幕分批发送给翻译服务，并生成译文字幕文件。",
    )
    parser.add_argument(
        "input",
        type=str,
        help="输入 SRT 字幕文件路径。",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=str,
        default=None,
        help="输出 SRT 文件路径（默认: name.srt -> name.pt.srt）。",
    )
    parser.add_argument(
        "--backend",
        type=str,
        choices=["openai", "gemini"],
        default=None,
        help="翻译服务后端：openai（Chat Completions 兼容）/ gemini。可通过 SUBTRANSLATE_BACKEND 配置。",
    )
    parser.add_argument(
        "--policy",
        type=str,
        choices=["best_effort", "strict"],
        default=None,
        help="失败处理策略：best_effort（缺失条目保留原文，默认）/ strict（校验失败重试，用尽后中止）。",
    )
    parser.add_argument(
        "--target-language",
        type=str,
        default=None,
        help="目标语言描述（默认: European Portuguese）。",
    )
    parser.add_argument(
        "--lang-suffix",
        type=str,
        default=None,
        help="输出文件名中的语言后缀（默认: pt）。",
    )
    parser.add_argument(
        "--char-budget",
        type=int,
        default=None,
        help="单批次最大字符数（默认: 3750）。",
    )
    parser.add_argument(
        "--max-attempts",
        type=int,
        default=None,
        help="strict 策略下每批最多尝试次数（默认: 3）。",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="输出调试日志。",
    )
    return parser


def _configure_logging(verbose: bool) -> None:
    if verbose:
        level = logging.DEBUG
    else:
        level_name = os.getenv("SUBTRANSLATE_LOG_LEVEL", "WARNING").strip().upper()
        level = getattr(logging, level_name, logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _print_progress(event: ProgressEvent) -> None:
    print(f"[{event.percent:3d}%] {event.message}")


def main(argv: list[str] | None = None) -> int:
    # 确保在解析参数和使用配置之前加载 .env 中的环境变量
    load_dotenv_if_present()
    if argv is None:
        argv = sys.argv[1:]

    parser = build_arg_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        config = SubtranslateConfig.from_env(
            backend=args.backend,
            translation_policy=args.policy,
            char_budget=args.char_budget,
            max_attempts=args.max_attempts,
            target_language=args.target_language,
            lang_suffix=args.lang_suffix,
        )
        pipeline = SubtitlePipeline.from_config(config, progress_callback=_print_progress)
        output_path = pipeline.translate_file(args.input, args.output)
        print("字幕翻译完成")
        print(f"   输入: {Path(args.input)}")
        print(f"   输出: {output_path}")
        return 0
    except KeyboardInterrupt:
        print("\n用户中断")
        return 1
    except Exception as exc:
        print(f"处理失败: {exc}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
