import os

# charts are written to files only; never open a window
os.environ.setdefault("MPLBACKEND", "Agg")
