from sqlalchemy import select

from taskflow.core.config import settings
from taskflow.main import create_app
from taskflow.models import User


async def test_create_app_uses_its_own_database(tmp_path):
    db_path = tmp_path / "app.db"
    app_settings = settings.model_copy(update={"DATABASE_URL": f"sqlite+aiosqlite:///{db_path}"})
    app = create_app(app_settings)

    assert app.state.engine.url.database == str(db_path)

    # lifespan 이 app.state 엔진에 테이블 생성
    async with app.router.lifespan_context(app):
        async with app.state.session_factory() as session:
            session.add(User(name="Alice Kim", email="alice@taskflow.io", password_hash="x"))
            await session.commit()

        async with app.state.session_factory() as session:
            emails = (await session.execute(select(User.email))).scalars().all()
            assert emails == ["alice@taskflow.io"]

    assert db_path.exists()
