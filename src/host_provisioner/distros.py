"""Per-distribution command table."""

from typing import Dict, Optional, Tuple

from host_provisioner.types import CommandChain, Distro, DistroProfile


def _systemd_service(name: str) -> Tuple[CommandChain, ...]:
    return (
        (("systemctl", "start", name),),
        (("systemctl", "enable", name),),
    )


# Departures from the first-boot shell script this table replaces:
# Debian enables "ssh" because sshd.service is only an alias there and cannot
# be enabled by that name; Arch installs "openssh" (there is no
# openssh-server package) and grants admin rights through "wheel" (no "sudo"
# group exists by default); apt-get replaces apt for a stable CLI.
DISTRO_PROFILES: Dict[Distro, DistroProfile] = {
    Distro.DEBIAN: DistroProfile(
        update=(
            (("apt-get", "update"), ("apt-get", "upgrade", "-y")),
        ),
        install=((("apt-get", "install", "-y", "openssh-server"),),),
        service=_systemd_service("ssh"),
        admin_group="sudo",
    ),
    Distro.REDHAT: DistroProfile(
        update=(
            (("dnf", "update", "-y"),),
            (("dnf", "install", "-y", "epel-release"),),
        ),
        install=((("dnf", "install", "-y", "openssh-server"),),),
        service=_systemd_service("sshd"),
        admin_group="wheel",
    ),
    Distro.ARCH: DistroProfile(
        update=((("pacman", "-Syu", "--noconfirm"),),),
        install=((("pacman", "-S", "--noconfirm", "openssh"),),),
        service=_systemd_service("sshd"),
        admin_group="wheel",
    ),
}


def profile_for(distro: Distro) -> Optional[DistroProfile]:
    """Return the command set for a distribution, None if unsupported."""
    return DISTRO_PROFILES.get(distro)


def package_manager_of(distro: Distro) -> Optional[str]:
    """Name of the package manager binary used for a distribution."""
    profile = profile_for(distro)
    if profile is None:
        return None
    return profile.install[0][0][0]
