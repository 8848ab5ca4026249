from sqlalchemy.ext.asyncio import AsyncSession


class BaseRepository:
    """Holds the request-scoped session shared by the repositories of one service."""

    def __init__(self, session: AsyncSession):
        self.session = session
