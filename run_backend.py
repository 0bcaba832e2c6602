import sys
import os

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

if __name__ == "__main__":
    import uvicorn
    # Single worker: the active dataset pointer lives in process memory
    uvicorn.run("recordqa.api.main:app", host="0.0.0.0", port=int(os.getenv("PORT", "5000")), reload=False)
