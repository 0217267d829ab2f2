from typing import Dict, List, Optional
from videonft.domain.models import Asset, IpfsAddresses, MintedNftInfo

class UIState:
    """What the console has shown so far for one pipeline run."""

    def __init__(self):
        self.current_step = 0
        self.steps: List[str] = []
        self.last_progress: Dict[str, float] = {}
        self.warnings: List[str] = []

        self.asset: Optional[Asset] = None
        self.ipfs: Optional[IpfsAddresses] = None
        self.minted: Optional[MintedNftInfo] = None

    def next_step(self, message: str) -> int:
        self.current_step += 1
        self.steps.append(message)
        return self.current_step

    def record_progress(self, stage: str, progress: float) -> bool:
        """Stores ``progress`` for ``stage``; False when it would repeat what was already shown."""
        shown = round(progress * 100)
        if stage in self.last_progress and round(self.last_progress[stage] * 100) >= shown:
            return False
        self.last_progress[stage] = progress
        return True
