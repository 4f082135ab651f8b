"""
Root entry point – delegates to the lego_vision package.

Usage:
    python lego_vision.py analyze --image board.jpg --polygon board_polygon.json
    python lego_vision.py analyze --image board.jpg --endpoint http://localhost:3000/api/segment
    python lego_vision.py palette
"""

from lego_vision.main import main

if __name__ == "__main__":
    main()
