# member_wallet/wallet_pass/cli.py

"""
Wallet Pass CLI Commands

Flask CLI commands for operating the wallet pass engine, including:
- Configuration checks
- Member wallet links
- Issuing a pass from the command line
- Checking a scanned verification token
"""

import click
from flask import current_app
from flask.cli import with_appcontext


def _pass_service():
    return current_app.extensions['member_wallet']['pass_service']


@click.group()
def wallet():
    """Wallet pass management commands."""
    pass


@wallet.command()
@with_appcontext
def check_config():
    """Show whether Apple and Google Wallet are fully configured."""
    status = _pass_service().config_status()

    click.echo('\nWallet Configuration:')
    click.echo('-' * 60)
    for platform in ('apple', 'google'):
        result = status[platform]
        state = 'OK' if result['configured'] else 'INCOMPLETE'
        click.echo(f'{platform.capitalize()} Wallet: {state}')
        for issue in result['issues']:
            click.echo(f'  - {issue}')
    click.echo('-' * 60)

    if not status['any_configured']:
        raise click.ClickException('No wallet platform is configured')


@wallet.command()
@click.option('--user-id', required=True, type=int, help='Internal user id')
@click.option('--base-url', default='', help='Site URL when MWP_SITE_URL is not set')
@with_appcontext
def links(user_id, base_url):
    """Print add-to-wallet links for a member."""
    for platform, url in _pass_service().wallet_links(user_id, base_url=base_url).items():
        click.echo(f'{platform}: {url}')


@wallet.command()
@click.option('--platform', required=True, type=click.Choice(['apple', 'google']), help='Wallet platform')
@click.option('--user-id', required=True, type=int, help='Internal user id')
@click.option('--output', default=None, type=click.Path(dir_okay=False, writable=True),
              help='Where to write the .pkpass file (Apple only)')
@click.option('--base-url', default='', help='Site URL when MWP_SITE_URL is not set')
@with_appcontext
def issue(platform, user_id, output, base_url):
    """Issue a pass for a member without going through the web flow."""
    service = _pass_service()
    nonce = service.nonce_service.create(user_id)

    result = service.issue(platform, user_id, nonce, base_url=base_url)
    if not result.success:
        raise click.ClickException(result.message)

    issued = result.data
    if issued.platform == 'google':
        click.echo(issued.redirect_url)
        return

    path = output or issued.filename
    with open(path, 'wb') as f:
        f.write(issued.content)
    click.echo(f'Wrote {path} (serial: {issued.serial_number}, {len(issued.content)} bytes)')


@wallet.command()
@click.argument('token')
@with_appcontext
def verify_token(token):
    """Validate a verification token taken from a pass QR code."""
    result = _pass_service().verify(token)
    if not result.success:
        raise click.ClickException(f'{result.error_code}: {result.message}')

    member = result.data
    click.echo(f'\nPass Valid:')
    click.echo(f'  Member: {member.member_name}')
    click.echo(f'  Member ID: {member.member_id}')
    click.echo(f'  Status: {member.status}')
    click.echo(f'  Valid Until: {member.valid_until:%Y-%m-%d}')
