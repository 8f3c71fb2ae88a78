# trojango

The core of a Trojan-protocol proxy. It parses a JSON or YAML configuration
into registered configuration sections, chooses the proxy factory named by
`run_type`, and relays connections and packets from inbound servers to an
outbound client. Around that core it provides a command-line front end, a
levelled and optionally coloured logger, a rewindable reader for sniffing
protocol headers, a redirector that forwards connections to a fallback
address, a broadcaster of connection records, and a decoder that pulls single
entries out of geoip/geosite `.dat` files.

## What this package does not do

No proxy modes are built in. Nothing registers a factory for `client`,
`server`, `forward`, `nat` or any other `run_type`, and there are no protocol
tunnels (TLS, WebSocket, multiplexing, Shadowsocks, SOCKS, HTTP). Unless your
own code registers a factory with `trojango.proxy.register_proxy_creator`,
every configuration ends with `unknown proxy type: ...` and the command exits
with status 1. There is also no gRPC management API, no user or traffic
accounting, and no router that uses the geodata files; `trojango.geodata`
only finds and returns the raw bytes of an entry.

## Installation

```
pip install .
```

Tests need the `test` extra:

```
pip install ".[test]"
pytest
```

## The `trojango` command

`trojango` (`trojango.cli:main`) installs the coloured logger on standard
output, then tries its modes in priority order until one applies: easy mode,
then standard input, then a configuration file. Every option can be written
with one dash or two.

Configuration file (`.json`, `.yaml` or `.yml`; any other extension is fatal):

```
trojango -config config.json
```

Without `-config` it tries `config.json`, `config.yml` and `config.yaml` in
the current directory, and exits with `no valid config` if none can be read.

Configuration from standard input:

```
trojango -stdin-format json < config.json
trojango -stdin-format yaml -stdin-suppress-hint < config.yaml
```

Unless `-stdin-suppress-hint` is given, a line with the version and platform
and a note on the expected format are printed first. `-stdin-format` defaults
to `disabled`; any value other than `json` (case-insensitive) is read as YAML.

Easy mode builds a JSON document from the flags instead of reading a file:

```
trojango -client -password password -remote example.com:443 -local 127.0.0.1:1080
trojango -server -password password -remote 127.0.0.1:80 -local 0.0.0.0:443 -cert server.crt -key server.key
```

An empty password is fatal. A client's local address defaults to
`127.0.0.1:1080`; a server's local address to `0.0.0.0:443` and its remote to
`127.0.0.1:80`. `-cert` and `-key` default to `server.crt` and `server.key`.
The generated document is logged and then handed to the proxy factory for
`client` or `server`, which, as said above, must be registered by you.

## Configuration

The section this package reads itself is `trojango.proxy.ProxyConfig`:

| JSON key            | YAML key            | Default |
|---------------------|---------------------|---------|
| `run_type`          | `run-type`          | `""`    |
| `log_level`         | `log-level`         | `1`     |
| `log_file`          | `log-file`          | `""`    |
| `relay_buffer_size` | `relay_buffer_size` | `8192`  |

`run_type` is matched case-insensitively against the registered factories.
`log_level` runs from 0 (everything, including debug and trace) through
1 (info), 2 (warn), 3 (error), 4 (fatal) to 5 (off). A non-empty `log_file`
is opened for appending and receives further log output. Keys not claimed by
any registered section are ignored.

Further sections are dataclasses (or dicts) registered with
`trojango.config.register_config_creator(name, factory)`. A field's key in
each format comes from its `metadata` (`{"json": ..., "yaml": ...}`),
otherwise from the field name. `with_json_config` and `with_yaml_config`
fill every registered section from the document and return a new
`trojango.config.Context`; `from_context(ctx, name)` reads a section back,
and `with_config(ctx, name, cfg)` attaches one directly. Malformed documents
and values of the wrong type raise `trojango.errors.TrojanError`.

## Library use

```python
from trojango import config, proxy
from trojango.common import sha224_string, human_friendly_traffic
from trojango.geodata import decode

print(sha224_string("password"))
print(human_friendly_traffic(5 * 1024 * 1024))   # "5.00 MiB"

entry = decode("geoip.dat", "private")            # raw bytes of the matching entry


def make_proxy(ctx):
    sources, sink = ..., ...                       # your inbound servers and outbound client
    return proxy.Proxy(sources, sink, ctx)


proxy.register_proxy_creator("CLIENT", make_proxy)
p = proxy.new_proxy_from_config_data(b'{"run_type": "client"}', is_json=True)
```

Modules:

- `trojango.proxy`: `Proxy` relays each source's `accept_conn()` to the
  sink's `dial_conn(address)` and each `accept_packet()` to `dial_packet()`,
  dropping packet sessions that open with a UPnP `M-SEARCH` request
  (`is_upnp_packet`). `run()` returns when all work has stopped; `close()`
  cancels and closes the sink and sources.
- `trojango.cli`: the command, plus `detect_and_read_config`,
  `client_config_json`, `server_config_json` and the option classes
  `ConfigOption`, `StdinOption` and `EasyOption`.
- `trojango.option`: `OptionHandler`, `register_handler`, and
  `pop_option_handler`, which removes and returns the highest priority.
- `trojango.api`: a name-to-service registry (`register_handler`,
  `run_service`); no services are registered.
- `trojango.log`: module-level logging calls sent to the logger installed with
  `register_logger` (an `EmptyLogger` that drops messages until then);
  `LogLevel`.
- `trojango.golog`: `logger.Logger` writes `[LEVEL] YYYY/MM/DD hh:mm:ss`
  lines, adds the caller for fatal, error and debug lines, and colours output
  on a terminal (colours are emitted on Linux only); `buffer.Buffer` and
  `colorful.ColorBuffer` support it.
- `trojango.simplelog`: `SimpleLogger`, timestamped plain lines to standard
  error or the writer given to `set_output`.
- `trojango.rewind`: `RewindReader` and `RewindConn` record what is read while
  buffering and replay it after `rewind()`; `StickyWriter` joins its first
  writes into one.
- `trojango.redirector`: `Redirector().redirect(Redirection(dial, redirect_to,
  inbound_conn))` copies data both ways between the inbound connection and the
  dialled target until one side ends; `close()` stops it.
- `trojango.recorder`: `subscribe` returns a bounded queue (10 records) of
  `Record`s filtered by transport and target port; `add` broadcasts, dropping
  records for full queues; `unsubscribe` removes a subscriber.
- `trojango.geodata`: `decode(filename, code)` and `emit_bytes(stream, code)`
  find an entry by case-insensitive code, raising `CodeNotFoundError` or
  `GeodataError`.
- `trojango.common`: `sha224_string`, `get_asset_location`,
  `get_program_dir`, `human_friendly_traffic`, `pick_port`,
  `write_all_bytes`, `write_file`, `fetch_http_content` and `Notifier`.
- `trojango.errors`: `TrojanError`, whose `base(err)` appends the cause's
  message after ` | `.

Asset files given by a relative name are resolved against the directory in the
`TROJAN_GO_LOCATION_ASSET` environment variable, or against the program's
directory when it is unset.