#!/usr/bin/env python3
"""
Simple WebSocket smoke test against a running backend: two players create,
join and start a room, then the host takes one turn.
"""

import asyncio
import json
import sys

import websockets


async def recv_until(websocket, event_type):
    while True:
        message = json.loads(await websocket.recv())
        if message["type"] in (event_type, "error"):
            return message


async def smoke_websocket(uri="ws://localhost:8000/ws"):
    """Drive a short two-player session."""
    try:
        print(f"Connecting to {uri}...")
        async with websockets.connect(uri) as host, websockets.connect(uri) as guest:
            print("✅ Connected to WebSocket server")

            await host.send(json.dumps({"type": "create_room", "name": "Host", "score_limit": 100}))
            joined = await recv_until(host, "room_joined")
            room_id = joined["room"]["id"]
            print(f"Room created: {room_id}")

            await guest.send(json.dumps({"type": "join", "room_id": room_id, "name": "Guest"}))
            print(f"Guest joined: {(await recv_until(guest, 'room_joined'))['player_id']}")

            await host.send(json.dumps({"type": "start"}))
            started = await recv_until(host, "game_started")
            print(f"Game started, joker rank {started['state']['joker_rank']}")
            hand = await recv_until(host, "hand")
            print(f"Host hand: {[c['id'] for c in hand['hand']]} (score {hand['score']})")

            await host.send(json.dumps({"type": "action", "action": "DRAW_DECK"}))
            await recv_until(host, "game_updated")
            hand = await recv_until(host, "hand")

            discard = max(hand["hand"], key=lambda c: 0 if c["is_wild"] else c["value"])
            await host.send(json.dumps({"type": "action", "action": "DISCARD", "card_id": discard["id"]}))
            updated = await recv_until(host, "game_updated")
            if updated["type"] == "error":
                print(f"❌ Discard rejected: {updated['message']}")
                return False
            print(f"Discarded {discard['id']}, turn passes to {updated['state']['current_player_id']}")

            print("✅ WebSocket smoke test completed successfully!")

    except Exception as e:
        print(f"❌ WebSocket smoke test failed: {e}")
        return False

    return True


if __name__ == "__main__":
    ok = asyncio.run(smoke_websocket(*sys.argv[1:2]))
    sys.exit(0 if ok else 1)
