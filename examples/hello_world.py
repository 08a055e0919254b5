"""
datastore_bridge — Hello World

Reads the session from the environment (ROBLOSECURITY, DATASTORE_PLACE_ID,
DATASTORE_UNIVERSE_ID), then walks through a versioned store, an update
race and an ordered leaderboard.
"""

import asyncio
import logging

from datastore_bridge import (
    ConflictError,
    DataStoreConfig,
    DataStoreService,
    SessionContext,
    SetOptions,
)


def show_update(value) -> None:
    print(f"  [on_update] new value: {value}")


async def main():
    logging.basicConfig(level=logging.INFO)

    # ──────────────────────────────────────
    #  1. Create the service
    # ──────────────────────────────────────
    session = SessionContext.from_env()
    config = DataStoreConfig.from_env()

    async with DataStoreService(session, config) as service:
        players = service.get_data_store("PlayerData")
        subscription = players.on_update("user/1", show_update)

        # ──────────────────────────────────────
        #  2. Set, get, update
        # ──────────────────────────────────────
        print("=== Versioned store ===\n")

        options = SetOptions(metadata={"source": "hello_world"})
        version = await players.set_async("user/1", {"coins": 10}, [1], options)
        print(f"  Wrote version {version}")

        value, key_info = await players.get_async("user/1")
        print(f"  Read {value} (version {key_info.version}, users {key_info.get_user_ids()})")

        def add_coins(old, key_info):
            return {"coins": old["coins"] + 5}

        try:
            value, key_info = await players.update_async("user/1", add_coins)
            print(f"  Updated to {value} (version {key_info.version})")
        except ConflictError:
            # Someone else wrote in between; the caller decides whether to retry
            print("  Lost the race, not retrying")

        subscription.disconnect()

        # ──────────────────────────────────────
        #  3. Version history
        # ──────────────────────────────────────
        print("\n=== Versions ===\n")

        pages = await players.list_versions_async("user/1", page_size=10)
        async for page in pages:
            for record in page:
                print(f"  {record.version}  {record.created_time}  deleted={record.is_deleted}")

        # ──────────────────────────────────────
        #  4. Ordered leaderboard
        # ──────────────────────────────────────
        print("\n=== Leaderboard ===\n")

        board = service.get_ordered_data_store("Leaderboard")
        for name, score in {"alice": 30, "bob": 10, "charlie": 20}.items():
            await board.set_async(name, score)

        pages = await board.get_sorted_async(False, 2)
        rank = 1
        async for page in pages:
            for entry in page:
                print(f"  #{rank} {entry.key}: {entry.value}")
                rank += 1


if __name__ == "__main__":
    asyncio.run(main())
