import sys
import os
import asyncio

# Add parent dir to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import async_session_maker, engine
from services.event_store import SqlEventStore


async def main():
    print("🗑️  Clearing analytics data...\n")
    try:
        async with async_session_maker() as session:
            counts = await SqlEventStore(session).clear()
        for table, count in counts.items():
            print(f"✅ Deleted {count} {table} records")
        print("\n✨ All analytics data cleared successfully!")
    except Exception as e:
        print(f"❌ Error clearing data: {e}")
        sys.exit(1)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
