"""로컬 실행 스크립트. Windows에서 asyncpg 호환을 위해 이벤트 루프 정책을 먼저 설정."""
import asyncio
import logging
import sys

if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

import uvicorn

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    uvicorn.run(
        "chalysh_auth.main:app",
        host="127.0.0.1",
        port=3000,
        reload=True,
    )
