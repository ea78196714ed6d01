from __future__ import annotations

import logging
import os
from pathlib import Path
import shutil

from fastapi import FastAPI, File, HTTPException, Request, UploadFile
from fastapi.responses import FileResponse, JSONResponse

from subtranslate.env import load_dotenv_if_present
from subtranslate.config import SubtranslateConfig
from subtranslate.errors import ContentError, SubtranslateError
from subtranslate.translate.translator import TranslationEngine
from .dependencies import (
    cleanup_old_jobs,
    create_job_dir,
    get_job_dir,
    load_job_meta,
    run_pipeline_for_web,
    write_job_meta,
)

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {"application/x-subrip", "application/octet-stream"}


def _max_upload_bytes() -> int:
    max_mb_env = os.getenv("SUBTRANSLATE_WEB_MAX_UPLOAD_MB", "10")
    try:
        max_mb = int(max_mb_env)
    except ValueError:
        max_mb = 10
    return max_mb * 1024 * 1024


def create_app(engine: TranslationEngine | None = None) -> FastAPI:
    """
    创建并配置 FastAPI 应用。

    - 加载 .env 环境变量；
    - 注册健康检查、任务提交与下载路由。

    engine 不为 None 时所有任务共用该翻译引擎，否则每个任务按环境配置构造。
    """
    load_dotenv_if_present()

    app = FastAPI(
        title="subtranslate Web",
        description="上传 SRT 字幕文件，分批翻译后下载译文。",
    )

    # 启动时尝试清理一次过期任务目录
    cleanup_old_jobs()

    @app.get("/health", response_class=JSONResponse)
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/jobs", response_class=JSONResponse)
    def create_job_api(
        request: Request,
        file: UploadFile = File(...),
    ) -> JSONResponse:
        """
        创建一个字幕翻译任务。

        - 接收上传的 SRT 文件并落地到独立任务目录；
        - 同步执行翻译流水线；
        - 成功时返回下载链接，失败时删除任务目录，不保留任何部分结果。
        """
        if not file.filename:
            raise HTTPException(status_code=400, detail="未选择要上传的文件。")

        input_name = Path(file.filename).name
        content_type = (file.content_type or "").split(";")[0].strip().lower()
        if not (
            input_name.lower().endswith(".srt")
            or content_type.startswith("text/")
            or content_type in ALLOWED_CONTENT_TYPES
        ):
            raise HTTPException(status_code=400, detail="不支持的文件类型，请上传 SRT 字幕文件。")

        # 每次请求前尝试清理过期任务
        cleanup_old_jobs()

        job_id, job_dir = create_job_dir()
        input_path = job_dir / input_name
        max_bytes = _max_upload_bytes()

        try:
            with input_path.open("wb") as f_out:
                copied = 0
                chunk_size = 1024 * 1024
                while True:
                    chunk = file.file.read(chunk_size)
                    if not chunk:
                        break
                    copied += len(chunk)
                    if copied > max_bytes:
                        raise HTTPException(
                            status_code=413,
                            detail=f"上传文件过大，超过限制 {max_bytes // (1024 * 1024)} MB。",
                        )
                    f_out.write(chunk)

            config = SubtranslateConfig.from_env()
            output_path, block_count = run_pipeline_for_web(config, input_path, engine=engine)
            write_job_meta(job_id, job_dir, input_name, output_path.name, config)
        except HTTPException:
            shutil.rmtree(job_dir, ignore_errors=True)
            raise
        except ContentError as exc:
            shutil.rmtree(job_dir, ignore_errors=True)
            return JSONResponse({"error": str(exc), "job_id": job_id}, status_code=400)
        except SubtranslateError as exc:
            shutil.rmtree(job_dir, ignore_errors=True)
            return JSONResponse({"error": str(exc), "job_id": job_id}, status_code=502)
        except Exception as exc:
            logger.exception("Job %s failed", job_id)
            shutil.rmtree(job_dir, ignore_errors=True)
            return JSONResponse({"error": str(exc), "job_id": job_id}, status_code=500)

        download_url = request.url_for("download_file", job_id=job_id)
        return JSONResponse(
            {
                "job_id": job_id,
                "input_name": input_name,
                "output_name": output_path.name,
                "block_count": block_count,
                # 将 URL 对象转换为字符串，避免 JSON 序列化错误
                "download_url": str(download_url),
            }
        )

    @app.get("/download/{job_id}", name="download_file")
    async def download_file(job_id: str) -> FileResponse:
        """
        下载任务生成的译文 SRT 文件。
        """
        job_dir = get_job_dir(job_id)
        if job_dir is None:
            raise HTTPException(status_code=404, detail="任务不存在或已被清理。")
        meta = load_job_meta(job_dir)
        if not meta or not meta.get("output_name"):
            raise HTTPException(status_code=404, detail="该任务没有可下载的译文文件。")
        output_path = job_dir / Path(str(meta["output_name"])).name
        if not output_path.is_file():
            raise HTTPException(status_code=404, detail="目标文件不存在。")
        return FileResponse(
            output_path,
            media_type="application/x-subrip",
            filename=output_path.name,
        )

    return app


def main() -> None:
    """
    通过 uvicorn 启动 Web 服务。

    监听地址与端口可通过 SUBTRANSLATE_WEB_HOST / SUBTRANSLATE_WEB_PORT 配置。
    """
    import uvicorn

    load_dotenv_if_present()
    host = os.getenv("SUBTRANSLATE_WEB_HOST", "127.0.0.1")
    try:
        port = int(os.getenv("SUBTRANSLATE_WEB_PORT", "8000"))
    except ValueError:
        port = 8000
    uvicorn.run("subtranslate.web.app:create_app", host=host, port=port, factory=True, reload=False)


if __name__ == "__main__":
    main()
