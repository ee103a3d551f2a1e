"""Graph domain service package.

Entity store, link derivation, upserts, relationship queries and search, each in a
focused module. The public operations are re-exported here.
"""
from .persons import get_person
from .transfers import get_transfer
from .links import refresh_person_links, refresh_transfer_links
from .upsert import upsert_person, upsert_transfer
from .connections import get_person_connections, get_transfer_connections
from .paths import align_path_edge, find_shortest_path
from .search import list_persons, list_transfers, search_persons, search_transfers
from .admin import clear_database, ensure_schema

__all__ = [
    # entity store
    'get_person','get_transfer',
    # derived links
    'refresh_person_links','refresh_transfer_links',
    # upserts
    'upsert_person','upsert_transfer',
    # relationship queries
    'get_person_connections','get_transfer_connections','align_path_edge','find_shortest_path',
    # search
    'list_persons','list_transfers','search_persons','search_transfers',
    # admin
    'clear_database','ensure_schema',
]
