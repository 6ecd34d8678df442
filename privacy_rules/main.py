"""
数据隐私规则服务 - 后端主入口
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv
import os

# 加载环境变量
load_dotenv()

from privacy_rules.database import init_database
from privacy_rules.utils.logger import setup_logger
from privacy_rules.routes import data_privacy_rules_router

# 初始化日志
logger = setup_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    worker_id = os.getpid()
    logger.info(f"Worker {worker_id} 正在启动...")

    try:
        init_database()
        logger.info(f"Worker {worker_id} 数据库初始化成功")
    except Exception as e:
        logger.error(f"Worker {worker_id} 数据库初始化失败: {e}", exc_info=True)
        raise

    yield

    logger.info(f"Worker {worker_id} 正在关闭...")


app = FastAPI(
    title="数据隐私规则 API",
    description="数据隐私规则的编辑、校验、保存与回滚",
    version="1.0.0",
    lifespan=lifespan
)

# 注册路由
app.include_router(data_privacy_rules_router)

# CORS配置
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "http://localhost:5173").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    return {"message": "数据隐私规则 API", "status": "running"}


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


def run():
    """命令行入口"""
    import uvicorn
    host = os.getenv("BACKEND_HOST", "0.0.0.0")
    port = int(os.getenv("BACKEND_PORT", 8000))
    log_level = os.getenv("LOG_LEVEL", "info").lower()

    logger.info(f"启动服务器: {host}:{port}, log_level={log_level}")

    uvicorn.run(
        "privacy_rules.main:app",
        host=host,
        port=port,
        log_level=log_level,
        access_log=log_level == "debug"
    )


if __name__ == "__main__":
    run()
