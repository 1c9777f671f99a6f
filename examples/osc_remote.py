import logging

import acidloop

logging.basicConfig(level=logging.INFO)

# Listens on 9000 and mirrors every parameter to 127.0.0.1:9001.
# Try: oscsend localhost 9000 /param/bass1/cutoff f 600
engine = acidloop.Engine()
engine.osc(receive_port=9000, send_port=9001)

engine.play()
