"""
Data — text written by the configurators.

Marker lines are how configurators recognise their own earlier
edits; changing them makes the next run append a second copy.
"""

from __future__ import annotations

DEFAULT_TMUX_CONF = """\
# Tmux configuration (written by devsetup)

# Remap prefix from 'C-b' to 'C-a'
unbind C-b
set-option -g prefix C-a
bind-key C-a send-prefix

set -g mouse on
set -g base-index 1
setw -g pane-base-index 1
set -g renumber-windows on
set -g history-limit 10000
set -g default-terminal "screen-256color"

setw -g monitor-activity on
set -g visual-activity on

# Split panes using | and -
bind | split-window -h
bind - split-window -v
unbind '"'
unbind %

bind r source-file ~/.tmux.conf \\; display-message "Config reloaded!"

# Switch panes using Alt-arrow without prefix
bind -n M-Left select-pane -L
bind -n M-Right select-pane -R
bind -n M-Up select-pane -U
bind -n M-Down select-pane -D

setw -g mode-keys vi
bind-key -T copy-mode-vi v send-keys -X begin-selection
bind-key -T copy-mode-vi y send-keys -X copy-selection
bind-key -T copy-mode-vi r send-keys -X rectangle-toggle

set -g status-bg black
set -g status-fg white
set -g status-interval 60
set -g status-left-length 30
set -g status-left '#[fg=green](#S) #(whoami)'
set -g status-right '#[fg=yellow]#(cut -d " " -f 1-3 /proc/loadavg)#[default] #[fg=white]%H:%M#[default]'

set -g pane-border-style fg=black
set -g pane-active-border-style fg=brightgreen
setw -g window-status-current-style fg=brightred,bg=black,bold
setw -g window-status-style fg=white,bg=black
set -g message-style fg=black,bg=brightgreen

set -g exit-empty off
set -sg escape-time 0
set -g focus-events on
"""

TPM_REPO = "https://github.com/tmux-plugins/tpm"
TPM_MARKER = "tmux-plugins/tpm"

TPM_BLOCK = """
# List of plugins
set -g @plugin 'tmux-plugins/tpm'
set -g @plugin 'tmux-plugins/tmux-sensible'
set -g @plugin 'tmux-plugins/tmux-resurrect'
set -g @plugin 'tmux-plugins/tmux-continuum'

# Initialize TMUX plugin manager (keep this line at the very bottom of tmux.conf)
run '~/.tmux/plugins/tpm/tpm'
"""

# Same header the shell installers write, so their blocks are recognised.
GIT_COMPLETION_MARKER = "# Git completion setup"

BASH_COMPLETION_BLOCK = f"""
{GIT_COMPLETION_MARKER}
if [ -f /usr/share/bash-completion/bash_completion ]; then
    source /usr/share/bash-completion/bash_completion
elif [ -f /etc/bash_completion ]; then
    source /etc/bash_completion
fi
if [ -f /usr/share/bash-completion/completions/git ]; then
    source /usr/share/bash-completion/completions/git
elif [ -f /etc/bash_completion.d/git ]; then
    source /etc/bash_completion.d/git
elif [ -f /opt/homebrew/etc/bash_completion.d/git-completion.bash ]; then
    source /opt/homebrew/etc/bash_completion.d/git-completion.bash
elif [ -f /usr/local/etc/bash_completion.d/git-completion.bash ]; then
    source /usr/local/etc/bash_completion.d/git-completion.bash
elif [ -f ~/.git-completion.bash ]; then
    source ~/.git-completion.bash
fi
"""

ZSH_COMPLETION_BLOCK = f"""
{GIT_COMPLETION_MARKER}
autoload -Uz compinit && compinit
autoload -U +X bashcompinit && bashcompinit
if [ -f /usr/share/bash-completion/completions/git ]; then
    source /usr/share/bash-completion/completions/git
elif [ -f /opt/homebrew/etc/bash_completion.d/git-completion.bash ]; then
    source /opt/homebrew/etc/bash_completion.d/git-completion.bash
elif [ -f /usr/local/etc/bash_completion.d/git-completion.bash ]; then
    source /usr/local/etc/bash_completion.d/git-completion.bash
elif [ -f ~/.git-completion.bash ]; then
    source ~/.git-completion.bash
fi
"""

EXTENSION_LIST_HEADER = """\
# VS Code extensions for this machine
# Install with:
#   grep -v '^#' vscode-extensions.txt | xargs -L1 code --install-extension
"""
