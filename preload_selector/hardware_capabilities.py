"""
Hardware Capabilities Configuration

Defines the known CPU microarchitecture generations, the named feature bundles
used for performance advisories, and the vector tiers that depend on the
operating system enabling extended register state.
This file can be easily updated as new hardware becomes available.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .capabilities import CapabilitySet, ExtendedFeature, ExtraFeature, Feature


@dataclass(frozen=True)
class Architecture:
    """A named, cumulative CPU feature profile"""

    name: str
    alias: Optional[str]
    capabilities: CapabilitySet

    @property
    def feature_count(self) -> int:
        return self.capabilities.feature_count

    def matches(self, name: str) -> bool:
        return name == self.name or (self.alias is not None and name == self.alias)

    def __str__(self):
        return self.name


def compose(base: Architecture, increment: Architecture) -> Architecture:
    """
    Build a generation on top of its predecessor

    Args:
        base: Predecessor generation
        increment: Generation-specific name, alias and additional features

    Returns:
        Architecture whose features are the union of both, named after the
        increment when it has a name, otherwise after the base
    """
    return Architecture(
        name=increment.name or base.name,
        alias=increment.alias or base.alias,
        capabilities=base.capabilities | increment.capabilities,
    )


# ============================================================================
# CPU Generations
# ============================================================================

# (gcc -march name, alias, features added on top of the previous generation)
# Feature lists follow "man gcc"; entries must stay in chronological order.
CPU_GENERATIONS: Sequence[Tuple[str, Optional[str], CapabilitySet]] = (
    # Intel Nehalem: MMX, SSE, SSE2, SSE3, SSSE3, SSE4.1, SSE4.2 and POPCNT
    ('nehalem', 'sse42', CapabilitySet(
        features=Feature.SSE3 | Feature.SSSE3 | Feature.SSE4_1 | Feature.SSE4_2 | Feature.POPCNT,
    )),
    # Intel Westmere: + AES and PCLMUL
    ('westmere', None, CapabilitySet(
        features=Feature.AES | Feature.PCLMULQDQ,
    )),
    # Intel Sandy Bridge: + AVX
    ('sandybridge', 'avx', CapabilitySet(
        features=Feature.AVX,
    )),
    # Intel Ivy Bridge: + FSGSBASE, RDRND and F16C
    ('ivybridge', None, CapabilitySet(
        features=Feature.F16C | Feature.RDRAND,
        extended=ExtendedFeature.FSGSBASE,
    )),
    # Intel Haswell: + MOVBE, AVX2, FMA, BMI, BMI2 and LZCNT
    ('haswell', 'avx2_fma', CapabilitySet(
        features=Feature.FMA | Feature.MOVBE,
        extended=ExtendedFeature.AVX2 | ExtendedFeature.BMI1 | ExtendedFeature.BMI2,
        extra=ExtraFeature.LZCNT,
    )),
    # Intel Broadwell: + RDSEED, ADCX and PREFETCHW
    ('broadwell', None, CapabilitySet(
        extended=ExtendedFeature.RDSEED | ExtendedFeature.ADX,
        extra=ExtraFeature.PREFETCHW,
    )),
    # Intel Skylake: + CLFLUSHOPT
    ('skylake', None, CapabilitySet(
        extended=ExtendedFeature.CLFLUSHOPT,
    )),
    # Intel Skylake Server: + AVX512F, CLWB, AVX512VL, AVX512BW, AVX512DQ and AVX512CD
    ('skylake-avx512', 'avx512', CapabilitySet(
        extended=(ExtendedFeature.AVX512F | ExtendedFeature.AVX512VL | ExtendedFeature.AVX512BW
                  | ExtendedFeature.AVX512DQ | ExtendedFeature.AVX512CD | ExtendedFeature.CLWB),
    )),
    # Intel Cannonlake: + AVX512VBMI, AVX512IFMA and SHA
    ('cannonlake', None, CapabilitySet(
        extended=ExtendedFeature.AVX512VBMI | ExtendedFeature.AVX512IFMA | ExtendedFeature.SHA,
    )),
    # Intel Icelake Client: + AVX512VBMI2, AVX512VNNI, AVX512BITALG, AVX512VPOPCNTDQ,
    # GFNI, VAES, VPCLMULQDQ and RDPID
    ('icelake-client', None, CapabilitySet(
        extended=(ExtendedFeature.AVX512VBMI2 | ExtendedFeature.AVX512VNNI
                  | ExtendedFeature.AVX512BITALG | ExtendedFeature.AVX512VPOPCNTDQ
                  | ExtendedFeature.GFNI | ExtendedFeature.VAES | ExtendedFeature.VPCLMULQDQ
                  | ExtendedFeature.RDPID),
    )),
    # Intel Icelake Server: + WBNOINVD
    ('icelake-server', None, CapabilitySet(
        extra=ExtraFeature.WBNOINVD,
    )),
)


def build_catalog(
        generations: Sequence[Tuple[str, Optional[str], CapabilitySet]]) -> List[Architecture]:
    """Fold compose() over generations, each one based on the one before it"""
    catalog: List[Architecture] = []
    base = Architecture(name='', alias=None, capabilities=CapabilitySet())
    for name, alias, features in generations:
        # aliases are never inherited by a later generation
        base = compose(Architecture('', None, base.capabilities),
                       Architecture(name, alias, features))
        catalog.append(base)
    return catalog


ARCHITECTURES: Tuple[Architecture, ...] = tuple(build_catalog(CPU_GENERATIONS))


def find_architecture(name: str,
                      catalog: Sequence[Architecture] = ARCHITECTURES) -> Optional[Architecture]:
    """Look a generation up by gcc name or alias"""
    for arch in catalog:
        if arch.matches(name):
            return arch
    return None


# ============================================================================
# OS-enabled vector tiers
# ============================================================================

# Features usable only when the OS saves the 256-bit AVX register state
VECTOR_TIER = CapabilitySet(
    features=Feature.AVX | Feature.FMA | Feature.F16C,
    extended=ExtendedFeature.AVX2,
)

# Features usable only when the OS saves the AVX-512 register state
WIDE_VECTOR_TIER = CapabilitySet(
    extended=(ExtendedFeature.AVX512F | ExtendedFeature.AVX512DQ | ExtendedFeature.AVX512IFMA
              | ExtendedFeature.AVX512CD | ExtendedFeature.AVX512BW | ExtendedFeature.AVX512VL
              | ExtendedFeature.AVX512VBMI | ExtendedFeature.AVX512VBMI2
              | ExtendedFeature.AVX512VNNI | ExtendedFeature.AVX512BITALG
              | ExtendedFeature.AVX512VPOPCNTDQ),
)


# ============================================================================
# Feature bundles
# ============================================================================

# Coarse capabilities a library build can be compiled for, best first
FEATURE_BUNDLES: Sequence[Tuple[str, CapabilitySet]] = (
    ('avx512', CapabilitySet(
        extended=(ExtendedFeature.AVX512F | ExtendedFeature.AVX512VL | ExtendedFeature.AVX512BW
                  | ExtendedFeature.AVX512DQ | ExtendedFeature.AVX512CD),
    )),
    ('avx2', CapabilitySet(extended=ExtendedFeature.AVX2)),
    ('fma', CapabilitySet(features=Feature.FMA)),
    ('avx', CapabilitySet(features=Feature.AVX)),
    ('sse42', CapabilitySet(features=Feature.SSE4_2)),
)


def bundles_covered_by(capabilities: CapabilitySet) -> List[str]:
    """Names of the bundles whose every feature is present in capabilities"""
    return [name for name, bundle in FEATURE_BUNDLES if capabilities.covers(bundle)]
