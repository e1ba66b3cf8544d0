# simplechat

simplechat is a small chat that runs over TCP. A server passes messages between
the users who are connected to it. A console client sends what you type and
prints what the other users write.

The text of every message is hidden by shifting each character by a fixed
amount. This stops the text from being read at a glance. It is **not**
encryption in any security sense.

## Installation

```
pip install .
```

## Running

Start the server. By default it listens on `localhost:8080`:

```
simplechat-server
```

In another terminal, start a client for each user:

```
simplechat-client
```

Both commands accept `--host` and `--port` to use another address:

```
simplechat-server --host 0.0.0.0 --port 9000
simplechat-client --host localhost --port 9000
```

The server logs each connection, join and departure to standard error. It runs
until you interrupt it.

## Commands

Your first line must be a join command. The client does not accept anything
else until you enter one:

```
JOIN:<username>
```

After you join, you can use these commands:

| Command                  | Effect                                        |
|--------------------------|-----------------------------------------------|
| `MSG:<message>`          | send a message to everyone else in the chat   |
| `P_MSG:<user>:<message>` | send a private message to one user            |
| `QUIT`                   | leave the chat (letter case does not matter)  |

The client hides the message text before it sends it and restores it when the
text arrives. User names and server notices are sent as they are.

The server rejects a name that is already in use. When a user joins or leaves,
the server tells everyone else in the chat. If the recipient of a private
message does not exist, the server tells the sender. If the server receives an
unknown command or an empty `MSG:`, it answers with an `ERROR:` line.

## Using it as a library

```python
from simplechat.settings import simple_encrypt, simple_decrypt

hidden = simple_encrypt("Hello")
assert simple_decrypt(hidden) == "Hello"
```

`simplechat.server` provides these:

- `Chat`: a thread-safe registry of the joined clients. It has `add_client`,
  which raises `DuplicateClientError` for a name that is already taken, and
  `remove_client`, `broadcast` and `send_private`. You can test membership with
  `name in chat`.
- `Client`: a user's name and socket.
- `handle_client(conn, chat)`: serves one connection from start to end.
- `serve(address)`: listens on a `(host, port)` pair and serves each client in
  its own thread.

`simplechat.client` provides the helpers that the console client uses:

- `is_join_command(line)`
- `encode_command(text)`: returns the line to send. It raises `UsageError` for
  input that is not a command.
- `format_incoming(line)`: returns the text to show for a line from the server.
- `receive_messages(conn, out)`: writes each incoming line to `out` until the
  connection ends.

## Limitations

The chat lives only in memory. It has no message history, no storage, no
passwords or accounts, and no real encryption. A user is known only by the
name given in `JOIN`, for as long as the connection lasts.

## Tests

```
pip install .[test]
pytest
```