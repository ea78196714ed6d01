from __future__ import annotations

"""
Web 层与核心 Pipeline 之间的集成点。

负责任务目录管理（创建 / 过期清理 / 元信息读写），
并以与 CLI 一致的方式调用 SubtitlePipeline。
"""

from typing import Any, Dict, Tuple
from pathlib import Path
import json
import logging
import shutil
import time
import uuid
from datetime import datetime

from subtranslate.config import SubtranslateConfig, _env_float, _env_str, derive_output_path
from subtranslate.pipeline import SubtitlePipeline
from subtranslate.translate.translator import TranslationEngine

logger = logging.getLogger(__name__)

JOB_ID_LENGTH = 8
DEFAULT_JOBS_TTL_HOURS = 12.0


def run_pipeline_for_web(
    config: SubtranslateConfig,
    input_path: Path,
    engine: TranslationEngine | None = None,
) -> Tuple[Path, int]:
    """
    Web 入口的高层封装：翻译 input_path，并把译文写到同一任务目录下。

    engine 为 None 时按 config 构造翻译引擎。返回 (译文路径, 字幕块数)，
    块数取自本次运行的解析结果，不再回读输出文件。
    """
    pipeline = SubtitlePipeline.from_config(config, engine=engine)
    output_path = derive_output_path(input_path, config.lang_suffix)
    written = pipeline.translate_file(input_path, output_path)
    return written, pipeline.block_count


def get_web_jobs_root() -> Path:
    """
    任务目录根路径：SUBTRANSLATE_WEB_JOBS_DIR，缺省为 ./exports/web_jobs。
    """
    configured = _env_str("SUBTRANSLATE_WEB_JOBS_DIR")
    root = Path(configured).expanduser().resolve() if configured else Path.cwd() / "exports" / "web_jobs"
    root.mkdir(parents=True, exist_ok=True)
    return root


def create_job_dir() -> Tuple[str, Path]:
    jobs_root = get_web_jobs_root()
    while True:
        job_id = uuid.uuid4().hex[:JOB_ID_LENGTH]
        job_dir = jobs_root / job_id
        try:
            job_dir.mkdir()
        except FileExistsError:
            continue
        return job_id, job_dir


def get_job_dir(job_id: str) -> Path | None:
    # job_id 由 uuid4().hex 生成，拒绝任何其它形式以防路径穿越
    if not job_id.isalnum():
        return None
    job_dir = get_web_jobs_root() / job_id
    return job_dir if job_dir.is_dir() else None


def cleanup_old_jobs(ttl_hours: float | None = None) -> int:
    """
    删除最后修改时间早于 TTL 的任务目录，返回删除的数量。

    ttl_hours 缺省取 SUBTRANSLATE_WEB_JOBS_TTL_HOURS（默认 12 小时）；不大于 0 时关闭清理。
    """
    if ttl_hours is None:
        ttl_hours = _env_float("SUBTRANSLATE_WEB_JOBS_TTL_HOURS", DEFAULT_JOBS_TTL_HOURS)
    if ttl_hours <= 0:
        return 0

    cutoff = time.time() - ttl_hours * 3600.0
    removed = 0
    for job_dir in get_web_jobs_root().iterdir():
        try:
            expired = job_dir.is_dir() and job_dir.stat().st_mtime < cutoff
        except OSError:
            continue
        if expired:
            shutil.rmtree(job_dir, ignore_errors=True)
            removed += 1
    if removed:
        logger.info("Removed %d expired web job(s)", removed)
    return removed


def write_job_meta(
    job_id: str,
    job_dir: Path,
    input_name: str,
    output_name: str,
    config: SubtranslateConfig,
) -> None:
    """
    将任务的基本元信息写入 job.json，下载接口据此定位译文文件。
    """
    meta_path = job_dir / "job.json"
    data: Dict[str, Any] = {
        "job_id": job_id,
        "input_name": input_name,
        "output_name": output_name,
        "created_at": datetime.now().isoformat(timespec="seconds"),
        "backend": config.backend,
        "translation_policy": config.translation_policy,
        "target_language": config.target_language,
    }
    meta_path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")


def load_job_meta(job_dir: Path) -> Dict[str, Any] | None:
    """
    从任务目录读取 job.json，如果不存在或损坏则返回 None。
    """
    meta_path = job_dir / "job.json"
    if not meta_path.is_file():
        return None
    try:
        data = json.loads(meta_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.warning("Unreadable job metadata %s: %s", meta_path, exc)
        return None
    return data if isinstance(data, dict) else None
