# skilltree/app.py

import logging
import os

from dash import Dash

from skilltree.callbacks import CallbackRegistrar
from skilltree.figure import FigureBuilder
from skilltree.layout import LayoutBuilder
from skilltree.session import SkillTreeSession
from skilltree.store import InMemoryTrickStore

logging.basicConfig(
    level=os.environ.get("SKILLTREE_LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Paths to data files
data_dir = os.environ.get(
    "SKILLTREE_DATA_DIR", os.path.join(os.path.dirname(__file__), "..", "data")
)
categories_path = os.path.join(data_dir, "categories.csv")
tricks_path = os.path.join(data_dir, "tricks.csv")
completions_path = os.path.join(data_dir, "completions.csv")

# Empty user id means an anonymous viewer whose progress is not saved
user_id = os.environ.get("SKILLTREE_USER", "demo-user") or None

store = InMemoryTrickStore.from_csv(
    categories_path,
    tricks_path,
    completions_path if os.path.exists(completions_path) else None,
)

# Initialize Dash app
app = Dash(__name__, suppress_callback_exceptions=True)
app.title = "Skill Tree"

# Layout
layout_builder = LayoutBuilder(store)
app.layout = layout_builder.create_layout()

# Callbacks (single-user viewer; events on the shared session are serialized)
callback_registrar = CallbackRegistrar(
    app, SkillTreeSession(store), FigureBuilder(), user_id=user_id
)
callback_registrar.register_callbacks()

# Exposes the underlying Flask server for Gunicorn
server = app.server

if __name__ == "__main__":
    app.run(debug=os.environ.get("SKILLTREE_DEBUG") == "1")
