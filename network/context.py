"""Explicit network context passed to every store query."""
import logging
from dataclasses import dataclass, field

from sqlalchemy import MetaData, Table, create_engine
from sqlalchemy.engine import Engine

from network import schema

logger = logging.getLogger(__name__)


@dataclass
class NetworkContext:
    """
    Connection and addressing details for the events network.

    Queries that would otherwise depend on a "current site" take the root
    blog and table prefix from here instead.
    """
    engine: Engine
    network_id: int
    root_blog_id: int
    table_prefix: str = 'wc_'
    metadata: MetaData = field(default_factory=MetaData)

    @classmethod
    def from_url(
        cls,
        database_url: str,
        network_id: int,
        root_blog_id: int,
        table_prefix: str = 'wc_'
    ) -> 'NetworkContext':
        engine = create_engine(database_url, pool_pre_ping=True)
        logger.info(
            f"Created database engine for network {network_id} "
            f"(dialect: {engine.dialect.name})"
        )
        return cls(
            engine=engine,
            network_id=network_id,
            root_blog_id=root_blog_id,
            table_prefix=table_prefix
        )

    @property
    def events(self) -> Table:
        return schema.events_table(self.metadata)

    @property
    def blogs(self) -> Table:
        return schema.blogs_table(self.metadata, self.table_prefix)

    @property
    def posts(self) -> Table:
        return schema.posts_table(self.metadata, self.table_prefix, self.root_blog_id)

    @property
    def postmeta(self) -> Table:
        return schema.postmeta_table(self.metadata, self.table_prefix, self.root_blog_id)

    def create_tables(self) -> None:
        """Create the tables this package reads. Used for local setups and tests."""
        for table in (self.events, self.blogs, self.posts, self.postmeta):
            table.create(self.engine, checkfirst=True)
