"""Testing helpers."""

from contextlib import contextmanager
import shutil
import tempfile

from ..util import GraphStore


@contextmanager
def temporary_store(create: bool = True, drop: bool = True):
    """Provide a graph store in a throwaway sqlite file."""
    db_path = tempfile.mkdtemp()
    store = GraphStore(f'sqlite:///{db_path}/test.db')
    if create:
        store.create_all()
    try:
        yield store
    finally:
        if drop:
            store.drop_all()
        store.dispose()
        shutil.rmtree(db_path)
