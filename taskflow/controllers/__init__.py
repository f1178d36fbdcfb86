from .health_controller import router as health_router
from .auth_controller import router as auth_router
from .user_controller import router as user_router
from .project_controller import router as project_router
from .task_controller import router as task_router
from .dashboard_controller import router as dashboard_router

# 모든 라우터를 튜플로 묶어 관리합니다.
# (router, prefix, tags) 순서로 정의
all_routers = [
    (health_router, "/api/health", "Health"),
    (auth_router, "/api/auth", "Auth"),
    (user_router, "/api/users", "Users"),
    (project_router, "/api/projects", "Projects"),
    (task_router, "/api/tasks", "Tasks"),
    (dashboard_router, "/api/dashboard", "Dashboard"),
]
