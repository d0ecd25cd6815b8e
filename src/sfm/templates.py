# sfm/templates.py
from dataclasses import dataclass, field

from .env_probe import ShellFamily
from .errors import TemplateMissingError

POSIX = ShellFamily.POSIX_LIKE
FISH = ShellFamily.STRUCTURED_SCRIPT


@dataclass(frozen=True)
class Feature:
    key: str
    title: str
    description: str
    usage: str
    templates: dict = field(repr=False)
    shortcut: str | None = None
    requires: str | None = None

    def template(self, family: ShellFamily) -> str:
        try:
            return self.templates[family]
        except KeyError:
            raise TemplateMissingError(self.key, family) from None


# =========================================================
# FUNCTIONS
# =========================================================

EXTRACT_SH = """# Universal archive extractor
extract() {
    if [ -z "$1" ]; then
        echo "Usage: extract <file>"
        return 1
    fi
    if [ ! -f "$1" ]; then
        echo "Error: '$1' is not a valid file"
        return 1
    fi
    case "$1" in
        *.tar.bz2)   tar xjf "$1"     ;;
        *.tar.gz)    tar xzf "$1"     ;;
        *.bz2)       bunzip2 "$1"     ;;
        *.rar)       unrar x "$1"     ;;
        *.gz)        gunzip "$1"      ;;
        *.tar)       tar xf "$1"      ;;
        *.tbz2)      tar xjf "$1"     ;;
        *.tgz)       tar xzf "$1"     ;;
        *.zip)       unzip "$1"       ;;
        *.Z)         uncompress "$1"  ;;
        *.7z)        7z x "$1"        ;;
        *.tar.xz)    tar xJf "$1"     ;;
        *.xz)        unxz "$1"        ;;
        *)           echo "Error: '$1' cannot be extracted via extract()" ;;
    esac
}
"""

EXTRACT_FISH = """# Universal archive extractor
function extract
    if test (count $argv) -eq 0
        echo "Usage: extract <file>"
        return 1
    end
    if not test -f $argv[1]
        echo "Error: '$argv[1]' is not a valid file"
        return 1
    end
    switch $argv[1]
        case "*.tar.bz2"
            tar xjf $argv[1]
        case "*.tar.gz"
            tar xzf $argv[1]
        case "*.bz2"
            bunzip2 $argv[1]
        case "*.gz"
            gunzip $argv[1]
        case "*.tar"
            tar xf $argv[1]
        case "*.zip"
            unzip $argv[1]
        case "*.7z"
            7z x $argv[1]
        case "*.tar.xz"
            tar xJf $argv[1]
        case "*"
            echo "Error: '$argv[1]' cannot be extracted"
    end
end
"""

MKCD_SH = """# Create directory and cd into it
mkcd() {
    if [ -z "$1" ]; then
        echo "Usage: mkcd <directory>"
        return 1
    fi
    mkdir -p "$1" && cd "$1"
}
"""

MKCD_FISH = """# Create directory and cd into it
function mkcd
    if test (count $argv) -eq 0
        echo "Usage: mkcd <directory>"
        return 1
    end
    mkdir -p $argv[1]; and cd $argv[1]
end
"""

PSGREP_SH = """# Find process by name
psgrep() {
    if [ -z "$1" ]; then
        echo "Usage: psgrep <process_name>"
        return 1
    fi
    ps aux | grep -v grep | grep -i -e VSZ -e "$1"
}
"""

PSGREP_FISH = """# Find process by name
function psgrep
    if test (count $argv) -eq 0
        echo "Usage: psgrep <process_name>"
        return 1
    end
    ps aux | grep -v grep | grep -i -e VSZ -e $argv[1]
end
"""

BACKUP_SH = """# Quick backup with timestamp
backup() {
    if [ -z "$1" ]; then
        echo "Usage: backup <file_or_directory>"
        return 1
    fi
    if [ -e "$1" ]; then
        local backup_name="${1}.backup.$(date +%Y%m%d_%H%M%S)"
        cp -r "$1" "$backup_name"
        echo "Backup created: $backup_name"
    else
        echo "Error: $1 does not exist"
        return 1
    fi
}
"""

BACKUP_FISH = """# Quick backup with timestamp
function backup
    if test (count $argv) -eq 0
        echo "Usage: backup <file_or_directory>"
        return 1
    end
    if test -e $argv[1]
        set backup_name "$argv[1].backup."(date +%Y%m%d_%H%M%S)
        cp -r $argv[1] $backup_name
        echo "Backup created: $backup_name"
    else
        echo "Error: $argv[1] does not exist"
        return 1
    end
end
"""

MYIP_SH = """# Show network information
myip() {
    echo "Local IP addresses:"
    if command -v hostname &> /dev/null; then
        hostname -I 2>/dev/null || ip addr show | grep "inet " | grep -v 127.0.0.1 | awk '{print $2}'
    else
        ip addr show | grep "inet " | grep -v 127.0.0.1 | awk '{print $2}'
    fi
    echo ""
    echo "Public IP address:"
    if command -v curl &> /dev/null; then
        curl -s ifconfig.me || curl -s icanhazip.com || echo "Unable to determine public IP"
    elif command -v wget &> /dev/null; then
        wget -qO- ifconfig.me || echo "Unable to determine public IP"
    else
        echo "curl or wget required to determine public IP"
    fi
}
"""

MYIP_FISH = """# Show network information
function myip
    echo "Local IP addresses:"
    if command -v hostname &> /dev/null
        hostname -I 2>/dev/null; or ip addr show | grep "inet " | grep -v 127.0.0.1 | awk '{print $2}'
    else
        ip addr show | grep "inet " | grep -v 127.0.0.1 | awk '{print $2}'
    end
    echo ""
    echo "Public IP address:"
    if command -v curl &> /dev/null
        curl -s ifconfig.me; or echo "Unable to determine public IP"
    else if command -v wget &> /dev/null
        wget -qO- ifconfig.me; or echo "Unable to determine public IP"
    else
        echo "curl or wget required"
    end
end
"""

PORTCHECK_SH = """# Check what's listening on a port
portcheck() {
    if [ -z "$1" ]; then
        echo "Usage: portcheck <port>"
        return 1
    fi
    echo "Checking port $1..."
    if command -v lsof &> /dev/null; then
        sudo lsof -i ":$1" || echo "Port $1 is not in use"
    elif command -v ss &> /dev/null; then
        sudo ss -tulpn | grep ":$1" || echo "Port $1 is not in use"
    else
        echo "lsof or ss required for port checking"
        return 1
    fi
}
"""

PORTCHECK_FISH = """# Check what's listening on a port
function portcheck
    if test (count $argv) -eq 0
        echo "Usage: portcheck <port>"
        return 1
    end
    echo "Checking port $argv[1]..."
    if command -v lsof &> /dev/null
        sudo lsof -i ":$argv[1]"; or echo "Port $argv[1] is not in use"
    else if command -v ss &> /dev/null
        sudo ss -tulpn | grep ":$argv[1]"; or echo "Port $argv[1] is not in use"
    else
        echo "lsof or ss required"
        return 1
    end
end
"""

FUNCTIONS = {
    f.key: f for f in [
        Feature("extract", "Extract - Universal Archive Extractor",
                "Automatically detects and extracts any archive format",
                "extract <file>", {POSIX: EXTRACT_SH, FISH: EXTRACT_FISH}, shortcut="ex"),
        Feature("mkcd", "Mkcd - Make Directory and Enter",
                "Creates a directory and immediately changes into it",
                "mkcd <dirname>", {POSIX: MKCD_SH, FISH: MKCD_FISH}),
        Feature("psgrep", "Psgrep - Find Process by Name",
                "Searches running processes by name",
                "psgrep <process_name>", {POSIX: PSGREP_SH, FISH: PSGREP_FISH}, shortcut="psg"),
        Feature("backup", "Backup - Quick File Backup",
                "Creates a timestamped backup of a file or directory",
                "backup <file_or_dir>", {POSIX: BACKUP_SH, FISH: BACKUP_FISH}, shortcut="bak"),
        Feature("myip", "Myip - Show Network Information",
                "Displays local and public IP addresses",
                "myip", {POSIX: MYIP_SH, FISH: MYIP_FISH}),
        Feature("portcheck", "Portcheck - Check Port Status",
                "Checks if a specific port is listening (requires sudo)",
                "portcheck <port>", {POSIX: PORTCHECK_SH, FISH: PORTCHECK_FISH}),
    ]
}


# =========================================================
# ALIASES
# =========================================================

def alias_line(family: ShellFamily, name: str, value: str) -> str:
    if family is FISH:
        return f"alias {name} '{value}'"
    return f"alias {name}='{value}'"


def _alias_templates(heading: str, pairs: list) -> dict:
    """Builds the literal per-family text for one alias group."""
    return {
        family: "\n".join([f"# {heading}"] + [alias_line(family, n, v) for n, v in pairs]) + "\n"
        for family in ShellFamily
    }


ALIAS_GROUPS = {
    f.key: f for f in [
        Feature("navigation", "Navigation shortcuts",
                "Quick navigation aliases (.. ... .... etc.)", ".. / ... / ....",
                _alias_templates("Navigation", [
                    ("..", "cd .."),
                    ("...", "cd ../.."),
                    ("....", "cd ../../.."),
                    (".....", "cd ../../../.."),
                ])),
        Feature("safety", "Safety aliases",
                "Safe rm/cp/mv aliases (interactive prompts)", "rm / cp / mv",
                _alias_templates("Safety", [
                    ("rm", "rm -i"),
                    ("cp", "cp -i"),
                    ("mv", "mv -i"),
                ])),
        Feature("ls-variants", "ls variants",
                "Enhanced ls aliases (ll, la, lt, etc.)", "ll / la / lt / l / lsd",
                _alias_templates("ls variants", [
                    ("ll", "ls -lh"),
                    ("la", "ls -lAh"),
                    ("lt", "ls -lth"),
                    ("l", "ls -CF"),
                    ("lsd", 'ls -l | grep "^d"'),
                ])),
        Feature("git", "Git shortcuts",
                "Common git aliases (gs, ga, gc, gp, etc.)", "gs / ga / gc / gp / gl / gd / gco / gb",
                _alias_templates("Git shortcuts", [
                    ("gs", "git status"),
                    ("ga", "git add"),
                    ("gc", "git commit"),
                    ("gp", "git push"),
                    ("gl", "git log --oneline --graph --decorate"),
                    ("gd", "git diff"),
                    ("gco", "git checkout"),
                    ("gb", "git branch"),
                ]), requires="git"),
        Feature("system-monitoring", "System monitoring",
                "System monitoring aliases (df, free, htop)", "df / free / psa / meminfo / cpuinfo",
                _alias_templates("System monitoring", [
                    ("df", "df -h"),
                    ("free", "free -h"),
                    ("psa", "ps auxf"),
                    ("meminfo", "free -m -l -t"),
                    ("cpuinfo", "lscpu"),
                ])),
        Feature("network", "Network utilities",
                "Network utility aliases", "ports / ping / wget",
                _alias_templates("Network utilities", [
                    ("ports", "netstat -tulanp"),
                    ("ping", "ping -c 5"),
                    ("wget", "wget -c"),
                ])),
    ]
}


def lookup(registry: dict, key: str, family: ShellFamily) -> str:
    """(key, family) -> template text. Unknown keys are a contract violation."""
    feature = registry.get(key)
    if feature is None:
        raise TemplateMissingError(key, family)
    return feature.template(family)


def offered(registry: dict, has_executable) -> list:
    """Features whose required executable, if any, is present."""
    return [f for f in registry.values() if not f.requires or has_executable(f.requires)]


def missing_templates() -> list:
    """(key, family) pairs without a template. Empty when the registry is complete."""
    gaps = []
    for registry in (FUNCTIONS, ALIAS_GROUPS):
        for feature in registry.values():
            for family in ShellFamily:
                if not feature.templates.get(family):
                    gaps.append((feature.key, family))
    return gaps
