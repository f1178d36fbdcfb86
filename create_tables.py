"""TaskFlow 테이블 생성 (동기 방식, pymysql)

사용법:
    python create_tables.py            # 없는 테이블만 생성
    python create_tables.py --reset    # 기존 테이블 삭제 후 재생성
"""
import sys

from sqlalchemy import create_engine

import taskflow.models  # noqa: F401  metadata에 테이블 등록
from taskflow.core.config import settings
from taskflow.core.database import Base

# 동기 엔진 생성 (aiomysql -> pymysql)
DATABASE_URL = settings.DATABASE_URL.replace("+aiomysql", "+pymysql")
engine = create_engine(DATABASE_URL, echo=True)


if __name__ == "__main__":
    print("Creating TaskFlow tables...")
    if "--reset" in sys.argv:
        Base.metadata.drop_all(bind=engine)  # 기존 테이블 삭제
    Base.metadata.create_all(bind=engine)
    print("TaskFlow tables created!")
