from __future__ import annotations

from pathlib import Path
from typing import Optional, Tuple

import numpy as np
import torch
from torchvision import models

from dashlight.analyzers.vision_base import InferenceBackend, OutputKind
from dashlight.vocabulary import LABELS

# ImageNet statistics the backbone was fine-tuned with
_MEAN = torch.tensor([0.485, 0.456, 0.406]).view(3, 1, 1)
_STD = torch.tensor([0.229, 0.224, 0.225]).view(3, 1, 1)


class MobileNetV2Backend(InferenceBackend):
    """
    On-device classifier: torchvision MobileNetV2 with a 36-way head.

    Expects a state dict saved with torch.save(model.state_dict(), path).
    The output layer order must follow the vocabulary order.
    """

    def __init__(
        self,
        weights_path: str,
        device: Optional[str] = None,
        output_kind: OutputKind = "logits",
        input_size: Tuple[int, int] = (224, 224),
    ):
        self.device = device or ("cuda" if torch.cuda.is_available() else "cpu")
        self.output_kind = output_kind
        self.input_size = input_size

        path = Path(weights_path)
        if not path.is_file():
            raise FileNotFoundError(f"Model weights not found: {path}")

        model = models.mobilenet_v2(weights=None, num_classes=len(LABELS))
        state = torch.load(path, map_location=self.device)
        if isinstance(state, dict) and "state_dict" in state:
            state = state["state_dict"]
        model.load_state_dict(state)
        model.eval()
        model.to(self.device)
        self.model = model

        self.model_name = f"mobilenet_v2:{path.name}"

    @torch.no_grad()
    def infer(self, pixels: np.ndarray) -> np.ndarray:
        # (H, W, 3) float32 [0,1] -> normalized [1, 3, H, W]
        x = torch.from_numpy(np.ascontiguousarray(pixels, dtype=np.float32)).permute(2, 0, 1)
        x = ((x - _MEAN) / _STD).unsqueeze(0).to(self.device)

        out = self.model(x)[0]
        return out.detach().cpu().float().numpy()
