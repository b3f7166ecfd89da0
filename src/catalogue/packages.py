"""Default hosting package catalogue.

Three families (NodeJS ``A``, VPS ``B``, Python ``C``) in six tiers each.
Python plans share the NodeJS panel limits.
"""

from catalogue.port import FeatureLimits, HostingPackage, PackageFamily, ResourceLimits

TIERS = ["Kroco", "Karbit", "Standar", "Sepuh", "Suhu", "Pro Max"]

_PREFIXES = {
    PackageFamily.NODEJS: "A",
    PackageFamily.VPS: "B",
    PackageFamily.PYTHON: "C",
}

# (price, ram, cpu, storage) per tier
_DISPLAY = {
    PackageFamily.NODEJS: [
        (5000, "1GB", "100% CPU", "2GB"),
        (7500, "2GB", "150% CPU", "4GB SSD"),
        (10000, "4GB", "200% CPU", "10GB SSD"),
        (12500, "5GB", "250% CPU", "10GB SSD"),
        (15000, "8GB", "300% CPU", "15GB SSD"),
        (20000, "16GB", "400% CPU", "20GB SSD"),
    ],
    PackageFamily.VPS: [
        (7500, "1GB", "100% CPU", "5GB SSD"),
        (10000, "2GB", "150% CPU", "10GB SSD"),
        (15000, "4GB", "200% CPU", "20GB SSD"),
        (20000, "6GB", "250% CPU", "30GB SSD"),
        (25000, "8GB", "300% CPU", "40GB SSD"),
        (35000, "16GB", "400% CPU", "80GB SSD"),
    ],
    PackageFamily.PYTHON: [
        (3000, "1GB", "100% CPU", "2GB SSD"),
        (5000, "1GB", "150% CPU", "4GB SSD"),
        (7500, "2GB", "150% CPU", "8GB SSD"),
        (10000, "4GB", "200% CPU", "16GB SSD"),
        (12500, "6GB", "250% CPU", "24GB SSD"),
        (17500, "8GB", "300% CPU", "32GB SSD"),
    ],
}

# (memory MiB, disk MiB, cpu %, databases, allocations, backups) per tier
_APP_LIMITS = [
    (512, 2048, 50, 1, 1, 1),
    (1024, 4096, 100, 1, 1, 2),
    (2048, 8192, 150, 2, 2, 3),
    (4096, 16384, 200, 3, 3, 5),
    (8192, 32768, 300, 5, 5, 7),
    (16384, 65536, 500, 10, 10, 10),
]

_VPS_LIMITS = [
    (1024, 5120, 100, 1, 1, 1),
    (2048, 10240, 150, 2, 2, 2),
    (4096, 20480, 200, 3, 3, 3),
    (8192, 40960, 300, 5, 5, 5),
    (16384, 81920, 500, 7, 7, 7),
    (32768, 163840, 800, 10, 10, 10),
]

_LIMITS = {
    PackageFamily.NODEJS: _APP_LIMITS,
    PackageFamily.VPS: _VPS_LIMITS,
    PackageFamily.PYTHON: _APP_LIMITS,
}


def default_packages() -> list[HostingPackage]:
    packages = []
    for family, prefix in _PREFIXES.items():
        for index, tier in enumerate(TIERS):
            price, ram, cpu, storage = _DISPLAY[family][index]
            memory, disk, cpu_limit, databases, allocations, backups = _LIMITS[family][index]
            key = f"{prefix}{index + 1}"
            packages.append(
                HostingPackage(
                    key=key,
                    name=f"{key} - {family.value} {tier}",
                    family=family,
                    tier=tier,
                    price=price,
                    ram=ram,
                    cpu=cpu,
                    storage=storage,
                    resources=ResourceLimits(memory=memory, disk=disk, cpu=cpu_limit),
                    features=FeatureLimits(databases=databases, allocations=allocations, backups=backups),
                )
            )
    return packages
