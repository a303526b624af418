"""
Capability Model Module

CPU feature flags and GPU compute capabilities, and the immutable CapabilitySet
that the catalog, the host probes and the selector all exchange.

CPU features are kept in three independent groups that follow the CPUID leaves
they come from. The groups are never merged into one integer: bit 5 of leaf 1
and bit 5 of leaf 7 are unrelated features.
"""

from dataclasses import dataclass
from enum import IntFlag
from typing import Dict, FrozenSet, Iterable, List, NamedTuple, Tuple


class Feature(IntFlag):
    """CPUID leaf 1 (ECX) features"""
    SSE3 = 1 << 0
    PCLMULQDQ = 1 << 1
    SSSE3 = 1 << 9
    FMA = 1 << 12
    SSE4_1 = 1 << 19
    SSE4_2 = 1 << 20
    MOVBE = 1 << 22
    POPCNT = 1 << 23
    AES = 1 << 25
    AVX = 1 << 28
    F16C = 1 << 29
    RDRAND = 1 << 30


class ExtendedFeature(IntFlag):
    """CPUID leaf 7 features (EBX, then ECX shifted by 32)"""
    FSGSBASE = 1 << 0
    BMI1 = 1 << 3
    AVX2 = 1 << 5
    BMI2 = 1 << 8
    AVX512F = 1 << 16
    AVX512DQ = 1 << 17
    RDSEED = 1 << 18
    ADX = 1 << 19
    AVX512IFMA = 1 << 21
    CLFLUSHOPT = 1 << 23
    CLWB = 1 << 24
    AVX512CD = 1 << 28
    SHA = 1 << 29
    AVX512BW = 1 << 30
    AVX512VL = 1 << 31
    AVX512VBMI = 1 << (32 + 1)
    AVX512VBMI2 = 1 << (32 + 6)
    GFNI = 1 << (32 + 8)
    VAES = 1 << (32 + 9)
    VPCLMULQDQ = 1 << (32 + 10)
    AVX512VNNI = 1 << (32 + 11)
    AVX512BITALG = 1 << (32 + 12)
    AVX512VPOPCNTDQ = 1 << (32 + 14)
    RDPID = 1 << (32 + 22)


class ExtraFeature(IntFlag):
    """CPUID extended leaves (0x80000001 ECX, 0x80000008 EBX shifted by 32)"""
    LAHF = 1 << 0
    LZCNT = 1 << 5
    PREFETCHW = 1 << 8
    WBNOINVD = 1 << (32 + 9)


# Flag spellings reported by py-cpuinfo / /proc/cpuinfo for each feature.
# One table per group: members of different groups compare equal as ints.
FEATURE_FLAGS: Dict[Feature, Tuple[str, ...]] = {
    Feature.SSE3: ('pni', 'sse3'),
    Feature.PCLMULQDQ: ('pclmulqdq',),
    Feature.SSSE3: ('ssse3',),
    Feature.FMA: ('fma',),
    Feature.SSE4_1: ('sse4_1', 'sse4.1'),
    Feature.SSE4_2: ('sse4_2', 'sse4.2'),
    Feature.MOVBE: ('movbe',),
    Feature.POPCNT: ('popcnt',),
    Feature.AES: ('aes',),
    Feature.AVX: ('avx',),
    Feature.F16C: ('f16c',),
    Feature.RDRAND: ('rdrand',),
}

EXTENDED_FEATURE_FLAGS: Dict[ExtendedFeature, Tuple[str, ...]] = {
    ExtendedFeature.FSGSBASE: ('fsgsbase',),
    ExtendedFeature.BMI1: ('bmi1',),
    ExtendedFeature.AVX2: ('avx2',),
    ExtendedFeature.BMI2: ('bmi2',),
    ExtendedFeature.AVX512F: ('avx512f',),
    ExtendedFeature.AVX512DQ: ('avx512dq',),
    ExtendedFeature.RDSEED: ('rdseed',),
    ExtendedFeature.ADX: ('adx',),
    ExtendedFeature.AVX512IFMA: ('avx512ifma',),
    ExtendedFeature.CLFLUSHOPT: ('clflushopt',),
    ExtendedFeature.CLWB: ('clwb',),
    ExtendedFeature.AVX512CD: ('avx512cd',),
    ExtendedFeature.SHA: ('sha_ni', 'sha'),
    ExtendedFeature.AVX512BW: ('avx512bw',),
    ExtendedFeature.AVX512VL: ('avx512vl',),
    ExtendedFeature.AVX512VBMI: ('avx512vbmi',),
    ExtendedFeature.AVX512VBMI2: ('avx512_vbmi2', 'avx512vbmi2'),
    ExtendedFeature.GFNI: ('gfni',),
    ExtendedFeature.VAES: ('vaes',),
    ExtendedFeature.VPCLMULQDQ: ('vpclmulqdq',),
    ExtendedFeature.AVX512VNNI: ('avx512_vnni', 'avx512vnni'),
    ExtendedFeature.AVX512BITALG: ('avx512_bitalg', 'avx512bitalg'),
    ExtendedFeature.AVX512VPOPCNTDQ: ('avx512_vpopcntdq', 'avx512vpopcntdq'),
    ExtendedFeature.RDPID: ('rdpid',),
}

EXTRA_FEATURE_FLAGS: Dict[ExtraFeature, Tuple[str, ...]] = {
    ExtraFeature.LAHF: ('lahf_lm', 'lahf'),
    ExtraFeature.LZCNT: ('abm', 'lzcnt'),
    ExtraFeature.PREFETCHW: ('3dnowprefetch', 'prefetchw'),
    ExtraFeature.WBNOINVD: ('wbnoinvd',),
}


class ComputeCapability(NamedTuple):
    """GPU compute capability generation, e.g. 7.5"""
    major: int
    minor: int

    def __str__(self):
        return f"{self.major}.{self.minor}"


def _bit_count(value: int) -> int:
    return bin(int(value)).count('1')


def _names(value: IntFlag, group) -> List[str]:
    return [member.name.lower() for member in group if value & member == member]


@dataclass(frozen=True)
class CapabilitySet:
    """Hardware capability profile: three CPU feature groups and GPU capabilities"""

    features: Feature = Feature(0)
    extended: ExtendedFeature = ExtendedFeature(0)
    extra: ExtraFeature = ExtraFeature(0)
    gpu_capabilities: FrozenSet[ComputeCapability] = frozenset()

    def __post_init__(self):
        object.__setattr__(self, 'features', Feature(self.features))
        object.__setattr__(self, 'extended', ExtendedFeature(self.extended))
        object.__setattr__(self, 'extra', ExtraFeature(self.extra))
        object.__setattr__(
            self, 'gpu_capabilities',
            frozenset(ComputeCapability(*cc) for cc in self.gpu_capabilities)
        )

    def __or__(self, other: 'CapabilitySet') -> 'CapabilitySet':
        return CapabilitySet(
            features=self.features | other.features,
            extended=self.extended | other.extended,
            extra=self.extra | other.extra,
            gpu_capabilities=self.gpu_capabilities | other.gpu_capabilities,
        )

    def difference(self, other: 'CapabilitySet') -> 'CapabilitySet':
        """CPU bits set here but not in other (GPU capabilities are dropped)"""
        return CapabilitySet(
            features=self.features & ~other.features,
            extended=self.extended & ~other.extended,
            extra=self.extra & ~other.extra,
        )

    def issubset(self, other: 'CapabilitySet') -> bool:
        """True if every CPU bit set here is also set in other"""
        return (
            self.features & other.features == self.features
            and self.extended & other.extended == self.extended
            and self.extra & other.extra == self.extra
        )

    def covers(self, other: 'CapabilitySet') -> bool:
        return other.issubset(self)

    def intersects(self, other: 'CapabilitySet') -> bool:
        return bool(
            self.features & other.features
            or self.extended & other.extended
            or self.extra & other.extra
        )

    @property
    def feature_count(self) -> int:
        """Total number of CPU feature bits over the three groups"""
        return _bit_count(self.features) + _bit_count(self.extended) + _bit_count(self.extra)

    @property
    def is_empty(self) -> bool:
        return self.feature_count == 0

    def feature_names(self) -> List[str]:
        return (
            _names(self.features, Feature)
            + _names(self.extended, ExtendedFeature)
            + _names(self.extra, ExtraFeature)
        )

    @classmethod
    def from_flags(cls, flags: Iterable[str]) -> 'CapabilitySet':
        """
        Build a CPU-only set from reported CPU flag names

        Args:
            flags: Flag names as reported by py-cpuinfo or /proc/cpuinfo

        Returns:
            CapabilitySet with every recognised flag set in its group
        """
        reported = {flag.strip().lower() for flag in flags}

        def collect(table, empty):
            value = empty
            for member, spellings in table.items():
                if reported.intersection(spellings):
                    value |= member
            return value

        return cls(
            features=collect(FEATURE_FLAGS, Feature(0)),
            extended=collect(EXTENDED_FEATURE_FLAGS, ExtendedFeature(0)),
            extra=collect(EXTRA_FEATURE_FLAGS, ExtraFeature(0)),
        )


def parse_compute_capabilities(text: str) -> List[ComputeCapability]:
    """
    Parse a comma-separated compute capability list such as "7.5,8.0"

    Args:
        text: List as found in an artifact name; empty means no restriction

    Returns:
        Pairs in declared order

    Raises:
        ValueError: If an item is not <major>.<minor>
    """
    if text == '':
        return []

    result = []
    for item in text.split(','):
        parts = item.split('.')
        if len(parts) != 2 or not parts[0].isdigit() or not parts[1].isdigit():
            raise ValueError(f"can't parse gpu compute capability list item: {item!r}")
        result.append(ComputeCapability(int(parts[0]), int(parts[1])))
    return result
