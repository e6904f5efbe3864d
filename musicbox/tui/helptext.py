HELP_TEXT = """
musicbox — keys

  q              Quit
  ?              Help
  :              Command mode
  Space          Play/pause
  y              Toggle sync (all lines share the longest line's length)
  Tab            Switch track (piano ↔ beats)
  e              Edit the selected track (Esc to leave)

Edit mode:

  any key        Append the character
  Enter          New line
  Backspace      Delete the last character
  Esc            Back to normal mode

Piano rows (lower case = mf, upper case = ff):

  q w e r t y u  octave 3  C D E F G A B
  a s d f g h j  octave 4
  z x c v b n m  octave 5

Beats: a-z each pick one drum sample. Anything else is a rest.

Command mode (press ':' then type):

  share                 Show the share token for this session
  open <token>          Load a share token
  load <session.yaml>   Load a session file
  save <session.yaml>   Save the session file
  clear [piano|beats]   Clear one track (default: selected)
  sync                  Toggle sync
  quit | q
"""
