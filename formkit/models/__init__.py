# formkit/
# ├── models/
# │   ├── __init__.py
# │   ├── option.py       <-- site wide key/value store ("options")
# │   └── entity_meta.py  <-- key/value pairs attached to one entity id

from .option import Option
from .entity_meta import EntityMeta
