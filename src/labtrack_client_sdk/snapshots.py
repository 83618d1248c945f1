from __future__ import annotations

from typing import Iterable

from .models import Sample


class SampleSnapshots:
    """Last sample state observed by this client, keyed by sample id.

    The stored version is always a server value: it is replaced from fetched or
    returned samples and never derived locally.
    """

    def __init__(self) -> None:
        self._samples: dict[str, Sample] = {}

    def record(self, sample: Sample) -> Sample:
        self._samples[sample.id] = sample
        return sample

    def record_many(self, samples: Iterable[Sample]) -> list[Sample]:
        return [self.record(sample) for sample in samples]

    def get(self, sample_id: str) -> Sample | None:
        return self._samples.get(sample_id)

    def version_of(self, sample_id: str) -> int | None:
        sample = self._samples.get(sample_id)
        return sample.version if sample else None

    def forget(self, sample_id: str) -> None:
        self._samples.pop(sample_id, None)

    def clear(self) -> None:
        self._samples.clear()

    def __contains__(self, sample_id: object) -> bool:
        return sample_id in self._samples

    def __len__(self) -> int:
        return len(self._samples)
