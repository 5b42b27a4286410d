# n2kpilot

Tools for talking to an NMEA 2000 autopilot over a CAN bus:

- an NMEA 2000 node that claims an address, answers ISO requests and
  decodes the autopilot's status, attitude, rate of turn, command factors
  and remote-control radio reports;
- the state a pilot console shows (compass strip, rudder gauge, status
  labels, parameter groups), kept free of any GUI toolkit;
- saving the autopilot's parameter groups to a file and loading them back;
- the logic of a handheld radio remote: decoding radio packets, telling
  short presses from long ones and turning them into heading changes,
  man-overboard marks and beeps;
- two small bus watchers that run a program when a beep or a
  man-overboard frame is seen.

The package uses only the standard library. Talking to a real bus needs
Linux SocketCAN.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Command-line watchers

`n2k-watch-beep` listens for beep remote-control frames and plays, with
`/usr/bin/audioplay`, the file given for the beep type: the first file for
beep type 0 (short), the second for type 1 (long), and so on. A beep type
with no matching file is reported and skipped.

```
n2k-watch-beep short.wav long.wav
```

`n2k-watch-mob` listens for man-overboard frames and runs the given
program, without arguments, each time one arrives.

```
n2k-watch-mob /usr/local/bin/mob-alarm
```

Both print the CAN id and mask of the filter they install, then a line
for every matching frame, and wait for each program to finish before
reading on. Wrong usage, or a CAN socket that cannot be opened, ends them
with exit status 1.

## Library overview

### Units and frames

`n2kpilot.defs` holds the PGN numbers, priorities and addresses, and the
angle conversions used on the bus (`rad2deg`, `srad2deg`, `urad2deg`,
`deg2rad`, `udeg2rad`), where angles travel in units of 1/10000 radian.

`n2kpilot.frame.Frame` wraps a 29-bit CAN identifier and up to eight data
bytes. It gives the source, destination (`None` for broadcast frames),
PGN and priority, reads and writes little-endian integers with
`read_int` and `write_int`, and converts to the raw SocketCAN layout and
back with `pack` and `Frame.unpack`.

```python
from n2kpilot.frame import Frame

frame = Frame.unpack(raw)
print(frame.pgn(), frame.source(), frame.destination())
heading = frame.read_int(0, 2, True)
```

`n2kpilot.tx` holds the frames the node sends (address claim, command
factors, command factors request) in a `TxTable`; `n2kpilot.rx` holds the
handlers of the frames it receives in an `RxTable`. Receive handlers mark
their data invalid after five seconds without a frame.

### The node

`n2kpilot.node.Node` is the bus participant. Give it a `PilotModel`, set
the CAN interface name in `node.config.canif`, call `open` (with a socket
of your own, or none to create a raw CAN socket) and either call `step`
yourself or let `start` run it in a background thread; `close` stops it.
It moves through `NodeState` from unconfigured to claimed, defends its
address or moves to the next one when it loses, answers ISO requests for
the frames it sends, and hands everything else to the receive table.
`send_by_pgn` sends one of the transmit frames once the address is
claimed.

```python
from n2kpilot.model import DataUpdate, PilotModel
from n2kpilot.node import Node

model = PilotModel()
model.subscribe(lambda update, m: print(update.name, m.boat_heading))
with Node(model) as node:
    node.config.canif = "can0"
    node.open()
    node.start()
    ...
```

### Console state

`n2kpilot.model.PilotModel` collects what the node decodes: boat heading,
rate of turn, autopilot target heading, rudder angle, pilot status,
parameter values and remote radio state. Each change is passed to the
callbacks registered with `subscribe`, tagged with a `DataUpdate` kind.

`n2kpilot.widgets.Compass` and `n2kpilot.widgets.HorizGauge` compute what
a compass strip and a rudder gauge should draw for a given width (marks,
labels, rate-of-turn indicator, target marker, bar);
`n2kpilot.status.StatusView` formats the status labels and
`n2kpilot.numberfield.NumberField` is an integer text field that falls
back to its last set value.

### Parameter groups

The autopilot keeps six groups of three factors (`error`, `ROT`,
`accel`). `n2kpilot.params.ParamsPanel` selects a group, requests its
values and applies new ones. `ParamsSaver` requests each group in turn;
feed it the values the pilot reports (for example from `DATA_PARAMS`
updates of the model) through `set_values`, and it writes all six groups
to an INI-style file. `load_params` sends every complete group of such a
file back to the autopilot and returns the groups it sent.
`n2kpilot.properties.Properties` keeps the CAN interface name, unique
number, device instance and manufacturer code in a settings file.

### The radio remote

`n2kpilot.remote` holds the remote's behaviour: `RadioDecoder` splits the
receiver's byte stream into `RadioPacket`s of the paired transmitter,
`ButtonTracker` produces `ButtonEvent`s for short and long presses, and
`RemoteController` turns them into engage commands with a changed
heading, man-overboard marks and beeps, handed to a `send` callback.
`control_mob_frame`, `control_radio_frame` and `control_beep_frame` build
the matching remote-control frames, and `device_name` the remote's
8-byte NAME.

## What the package does not do

- There is no graphical console and no command to start one: the widget,
  status and parameter classes compute what to show, but nothing draws it.
- There are no file or settings dialogs; paths are passed in by the caller.
- `RemoteController` does not talk to a bus or a serial port itself: it
  gives its messages to the `send` callback, and engage commands come out
  as `EngageCommand` values, not encoded frames. It does no address
  claiming of its own.