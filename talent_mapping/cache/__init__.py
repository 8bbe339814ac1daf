# Raw key-value backends and the encrypted store on top of them
from .backends import InMemoryStore, KeyValueStore, RedisStore
from .secure_store import PersistenceStore
