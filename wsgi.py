from __future__ import annotations

import os

from rise_hrm import create_app

app = create_app()


if __name__ == "__main__":
    app.run(host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "5002")), debug=app.config["CFG"].DEBUG)
