"""
Command-line interface tools for the Mood Relay service.
"""

import asyncio
import json
from collections.abc import Coroutine
from typing import Any

import httpx
import socketio
import typer
from socketio.exceptions import ConnectionError as SocketConnectionError

from .models import MatchRecord, PrivateMessage, PrivateMessageEvent, User
from .sockets import RECEIVE_EVENT

DEFAULT_BASE_URL = "http://localhost:3001"

app = typer.Typer(help="Mood Relay CLI tools")


def _base_url_option() -> Any:
    """Shared --url option."""
    return typer.Option(
        DEFAULT_BASE_URL, "--url", "-u", help="Base URL of the Mood Relay service"
    )


# MARK: - Commands


@app.command()
def serve() -> None:
    """Run the Mood Relay server using environment settings."""
    from .server import main

    main()


@app.command()
def profile(
    user_id: str = typer.Argument(..., help="Your user id"),
    name: str = typer.Option("", "--name", "-n", help="Display name"),
    avatar: str = typer.Option("", "--avatar", "-a", help="Avatar URI"),
    show: bool = typer.Option(
        False, "--show", "-s", help="Print the stored profile instead of saving"
    ),
    base_url: str = _base_url_option(),
) -> None:
    """Create or replace a user profile, or show the stored one."""

    async def _profile() -> None:
        async with httpx.AsyncClient() as client:
            if show:
                response = await client.get(f"{base_url}/api/v1/user/{user_id}")
                response.raise_for_status()
                user = User.model_validate(response.json())
                print(f"{user.user_id}: {user.username or '-'} ({user.avatar or 'no avatar'})")
                return

            response = await client.post(
                f"{base_url}/api/v1/user/update",
                json={"user_id": user_id, "username": name, "avatar": avatar},
            )
            response.raise_for_status()
            print(f"Profile saved for {user_id}")

    _run_with_error_handling(_profile(), base_url)


@app.command()
def submit(
    user_id: str = typer.Argument(..., help="Your user id"),
    mood: int = typer.Argument(..., help="Mood level"),
    lat: float = typer.Argument(..., help="Latitude in decimal degrees"),
    lon: float = typer.Argument(..., help="Longitude in decimal degrees"),
    tag: str | None = typer.Option(None, "--tag", "-t", help="Optional label"),
    base_url: str = _base_url_option(),
) -> None:
    """Submit a mood reading at a location."""

    async def _submit() -> None:
        async with httpx.AsyncClient() as client:
            response = await client.post(
                f"{base_url}/api/v1/mood/submit",
                json={
                    "user_id": user_id,
                    "mood_level": mood,
                    "lat": lat,
                    "lon": lon,
                    "tag": tag,
                },
            )
            response.raise_for_status()
            print(f"Submitted: {response.json()['submission_id']}")

    _run_with_error_handling(_submit(), base_url)


@app.command()
def matches(
    mood: int = typer.Argument(..., help="Mood level to match"),
    user_id: str = typer.Argument(..., help="Your user id"),
    lat: float | None = typer.Option(None, "--lat", help="Search point latitude"),
    lon: float | None = typer.Option(None, "--lon", help="Search point longitude"),
    base_url: str = _base_url_option(),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output raw JSON"),
) -> None:
    """List users currently sharing a mood."""

    async def _matches() -> None:
        params: dict[str, Any] = {"mood": mood, "user_id": user_id}
        if lat is not None and lon is not None:
            params.update(search_lat=lat, search_lon=lon)

        async with httpx.AsyncClient() as client:
            response = await client.get(f"{base_url}/api/v1/mood/matches", params=params)
            response.raise_for_status()
            result = response.json()

        if json_output:
            print(json.dumps(result, indent=2))
            return

        records = [MatchRecord.model_validate(m) for m in result["matches"]]
        if not records:
            print("No matches")
        for record in records:
            print(_format_match(record))

    _run_with_error_handling(_matches(), base_url)


@app.command()
def send(
    sender_id: str = typer.Argument(..., help="Your user id"),
    target_id: str = typer.Argument(..., help="Recipient user id"),
    text: str = typer.Argument(..., help="Message text"),
    name: str = typer.Option("", "--name", "-n", help="Your display name"),
    base_url: str = _base_url_option(),
) -> None:
    """Send a private message to an online user."""

    async def _send() -> None:
        message = PrivateMessage(
            target_user_id=target_id, text=text, sender_name=name, sender_id=sender_id
        )
        sio = socketio.AsyncClient()
        await sio.connect(base_url)
        try:
            delivered = await sio.call(
                "send_private_message", message.model_dump(by_alias=True), timeout=5
            )
        finally:
            await sio.disconnect()
        print(f"Sent to {target_id} on {delivered or 0} connection(s)")

    _run_with_error_handling(_send(), base_url)


@app.command()
def listen(
    user_id: str = typer.Argument(..., help="Your user id"),
    base_url: str = _base_url_option(),
) -> None:
    """Print private messages sent to a user in real-time."""

    async def _listen() -> None:
        sio = socketio.AsyncClient()

        @sio.on(RECEIVE_EVENT)
        async def _on_message(data: dict) -> None:
            _handle_message(data)

        await sio.connect(base_url)
        await sio.emit("register_socket", user_id)
        print(f"Listening as {user_id}... (Ctrl+C to stop)")
        await sio.wait()

    _run_with_error_handling(_listen(), base_url)


# MARK: - Private Helpers


def _format_match(record: MatchRecord) -> str:
    """Format a match as a single line."""
    timestamp = record.created_at.strftime("%Y-%m-%d %H:%M:%S")
    name = record.username or record.user_id
    return f"{timestamp} > {name} @ ({record.lat:.4f}, {record.lon:.4f})"


def _handle_message(data: Any) -> None:
    """Handle a single incoming private message."""
    try:
        event = PrivateMessageEvent.model_validate(data)
    except Exception as e:
        print(f"Warning: Could not parse message: {data} - {e}")
        return
    print(f"{event.sender_name or event.sender_id}: {event.text}")


def _run_with_error_handling(coro: Coroutine[Any, Any, Any], base_url: str) -> None:
    """Run an async coroutine with standardized error handling."""
    try:
        asyncio.run(coro)
    except KeyboardInterrupt:
        print("\nStopped")
        raise typer.Exit(0)
    except (httpx.ConnectError, SocketConnectionError):
        print(f"Error: Could not connect to {base_url}")
        raise typer.Exit(1)
    except httpx.HTTPStatusError as e:
        print(f"Error: HTTP {e.response.status_code}")
        raise typer.Exit(1)
    except Exception as e:
        error_msg = str(e) if str(e) else f"Unknown error of type {type(e).__name__}"
        print(f"Error: {error_msg}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
